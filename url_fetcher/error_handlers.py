import logging
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from url_fetcher.core.registry import JobNotFoundError

logger = logging.getLogger("url_fetcher.errors")


def _error_details(exc: RequestValidationError) -> list[dict]:
    # errors() may carry exception objects in "ctx"; keep only what serializes
    return [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]


def register_error_handlers(app: FastAPI):
    @app.exception_handler(JobNotFoundError)
    async def not_found_handler(request: Request, exc: JobNotFoundError):
        logger.info("NotFound path=%s detail=%s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": str(exc)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(
            "HTTPException path=%s status=%s detail=%r",
            request.url.path, exc.status_code, exc.detail
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail) if exc.detail else "HTTP error"},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):
        details = _error_details(exc)
        logger.warning("ValidationError path=%s errors=%s", request.url.path, details)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Validation error", "details": details},
        )

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error at path=%s", request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )
