# url_fetcher/routers/fetch.py
from __future__ import annotations
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path, status
from fastapi.responses import Response
from pydantic import AnyUrl, BaseModel, ConfigDict, Field, StrictStr, TypeAdapter, ValidationError, field_validator

from url_fetcher.core.registry import JobRegistry, get_registry

router = APIRouter(prefix="/fetch", tags=["fetch"])

_URL = TypeAdapter(AnyUrl)
ALLOWED_SCHEMES = {"http", "https"}


def _check_url(value: str) -> str:
    try:
        parsed = _URL.validate_python(value)
    except ValidationError:
        raise ValueError(f"{value!r} is not a valid URL") from None
    if parsed.scheme not in ALLOWED_SCHEMES or not parsed.host:
        raise ValueError(f"{value!r} is not a valid URL")
    return value


# ---------- Models ----------
class SubmitUrlsRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    urls: List[StrictStr] = Field(
        ...,
        description="An array of URLs to fetch content from.",
        examples=[["https://www.google.com", "https://www.github.com"]],
    )

    @field_validator("urls")
    @classmethod
    def _each_is_url(cls, urls: List[str]) -> List[str]:
        # keep the submitted strings as-is; AnyUrl would normalise them
        return [_check_url(u) for u in urls]


class SubmitUrlsResponse(BaseModel):
    jobId: str


class SlotView(BaseModel):
    url: str
    status: str
    contentLength: int | None = None
    error: str | None = None


# ---------- Routes ----------
@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=SubmitUrlsResponse,
    summary="Submit a list of URLs for fetching",
    responses={400: {"description": "Bad Request. Invalid URLs provided."}},
)
def submit_urls(req: SubmitUrlsRequest, registry: JobRegistry = Depends(get_registry)):
    return {"jobId": registry.submit(req.urls)}


@router.get(
    "/{job_id}",
    response_model=List[SlotView],
    response_model_exclude_none=True,
    summary="Get the status of a fetch job",
    responses={404: {"description": "Job not found."}},
)
def get_results(
    job_id: UUID = Path(..., description="The UUID of the fetch job."),
    registry: JobRegistry = Depends(get_registry),
):
    return registry.get_results(str(job_id))


@router.get(
    "/{job_id}/{index}/content",
    response_class=Response,
    summary="Get the fetched content of a specific URL",
    responses={
        200: {"content": {"application/octet-stream": {}}, "description": "The raw content of the URL."},
        404: {"description": "Job, index, or content not found, or job not completed."},
    },
)
def get_result_content(
    job_id: UUID = Path(..., description="The UUID of the fetch job."),
    index: int = Path(..., ge=0, description="The index of the URL in the original submission."),
    registry: JobRegistry = Depends(get_registry),
):
    content = registry.get_result_content(str(job_id), index)
    return Response(content=content, media_type="application/octet-stream")
