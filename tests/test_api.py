"""End-to-end tests for the HTTP surface."""

import threading
import uuid

import pytest
from fastapi.testclient import TestClient

from url_fetcher.core.registry import JobRegistry
from url_fetcher.main import OVERVIEW_MESSAGE
from url_fetcher.services.fetcher import FetchError, FetchResponse

from fakes import FakeFetcher

UNKNOWN_ID = "f47ac10b-58cc-4372-a567-0e02b2c3d479"


def _submit(client: TestClient, urls: list[str]) -> str:
    response = client.post("/fetch", json={"urls": urls})
    assert response.status_code == 201, response.text
    job_id = response.json()["jobId"]
    assert str(uuid.UUID(job_id)) == job_id
    return job_id


def test_happy_path(client: TestClient, registry: JobRegistry, fetcher: FakeFetcher) -> None:
    fetcher.outcomes["https://example.com/a"] = FetchResponse(content=b"hello", declared_length=5)

    job_id = _submit(client, ["https://example.com/a"])
    assert registry.drain(timeout=5)

    response = client.get(f"/fetch/{job_id}")
    assert response.status_code == 200
    assert response.json() == [
        {"url": "https://example.com/a", "status": "completed", "contentLength": 5}
    ]

    content = client.get(f"/fetch/{job_id}/0/content")
    assert content.status_code == 200
    assert content.content == b"hello"
    assert content.headers["content-type"] == "application/octet-stream"


def test_fetch_error(client: TestClient, registry: JobRegistry, fetcher: FakeFetcher) -> None:
    fetcher.outcomes["https://example.com/down"] = FetchError("Network Error")

    job_id = _submit(client, ["https://example.com/down"])
    assert registry.drain(timeout=5)

    assert client.get(f"/fetch/{job_id}").json() == [
        {"url": "https://example.com/down", "status": "error", "error": "Network Error"}
    ]
    response = client.get(f"/fetch/{job_id}/0/content")
    assert response.status_code == 404
    assert "error" in response.json()


def test_mixed_outcome_overview(client: TestClient, registry: JobRegistry, fetcher: FakeFetcher) -> None:
    fetcher.outcomes["https://example.com/ok"] = FetchResponse(content=b"ok", declared_length=2)

    job_id = _submit(client, ["https://example.com/ok", "https://example.com/bad"])
    assert registry.drain(timeout=5)

    body = client.get("/").json()
    assert body["message"] == OVERVIEW_MESSAGE
    assert body["totalJobs"] == 1
    assert body["jobs"] == [
        {"jobId": job_id, "status": "partial", "urlCount": 2, "completedCount": 1, "errorCount": 1}
    ]


@pytest.mark.parametrize(
    "payload",
    [
        {"urls": ["not-a-valid-url"]},
        {"urls": "just-a-string"},
        {},
        {"urls": [123]},
        {"urls": ["ftp://example.com/file"]},
        {"urls": ["https://example.com"], "priority": "high"},
    ],
)
def test_invalid_submissions_are_rejected(client: TestClient, registry: JobRegistry, payload: dict) -> None:
    response = client.post("/fetch", json=payload)
    assert response.status_code == 400
    assert response.json()["error"] == "Validation error"
    assert registry.job_count() == 0


def test_malformed_json_is_rejected(client: TestClient) -> None:
    response = client.post(
        "/fetch", content=b"{not json", headers={"content-type": "application/json"}
    )
    assert response.status_code == 400


def test_submitted_urls_are_echoed_verbatim(
    client: TestClient, registry: JobRegistry, fetcher: FakeFetcher, gate: threading.Event
) -> None:
    fetcher.outcomes["https://Example.com"] = gate
    job_id = _submit(client, ["https://Example.com"])
    assert client.get(f"/fetch/{job_id}").json() == [{"url": "https://Example.com", "status": "pending"}]


def test_empty_url_list_is_an_instantly_completed_job(client: TestClient) -> None:
    job_id = _submit(client, [])
    assert client.get(f"/fetch/{job_id}").json() == []
    assert client.get("/").json()["jobs"][0]["status"] == "completed"
    assert client.get(f"/fetch/{job_id}/0/content").status_code == 404


def test_unknown_job(client: TestClient) -> None:
    assert client.get(f"/fetch/{UNKNOWN_ID}").status_code == 404
    assert client.get(f"/fetch/{UNKNOWN_ID}/0/content").status_code == 404


@pytest.mark.parametrize(
    "path",
    [
        "/fetch/not-a-uuid",
        "/fetch/not-a-uuid/0/content",
        f"/fetch/{UNKNOWN_ID}/abc/content",
        f"/fetch/{UNKNOWN_ID}/-1/content",
    ],
)
def test_malformed_path_params(client: TestClient, path: str) -> None:
    response = client.get(path)
    assert response.status_code == 400
    assert response.json()["error"] == "Validation error"


def test_index_out_of_range(client: TestClient, registry: JobRegistry, fetcher: FakeFetcher) -> None:
    fetcher.outcomes["https://example.com/a"] = FetchResponse(content=b"hello")
    job_id = _submit(client, ["https://example.com/a"])
    assert registry.drain(timeout=5)
    assert client.get(f"/fetch/{job_id}/1/content").status_code == 404


def test_pending_content_is_not_found(
    client: TestClient, fetcher: FakeFetcher, gate: threading.Event
) -> None:
    fetcher.outcomes["https://slow.example.com/"] = gate
    job_id = _submit(client, ["https://slow.example.com/"])
    assert client.get(f"/fetch/{job_id}").json()[0]["status"] == "pending"
    assert client.get(f"/fetch/{job_id}/0/content").status_code == 404


def test_overview_lists_most_recent_first(client: TestClient) -> None:
    j1 = _submit(client, ["https://example.com/1"])
    j2 = _submit(client, ["https://example.com/2"])
    j3 = _submit(client, ["https://example.com/3"])

    body = client.get("/").json()
    assert body["totalJobs"] == 3
    assert [j["jobId"] for j in body["jobs"]] == [j3, j2, j1]


def test_results_never_include_content(
    client: TestClient, registry: JobRegistry, fetcher: FakeFetcher
) -> None:
    fetcher.outcomes["https://example.com/a"] = FetchResponse(content=b"secret")
    job_id = _submit(client, ["https://example.com/a"])
    assert registry.drain(timeout=5)
    [slot] = client.get(f"/fetch/{job_id}").json()
    assert "content" not in slot
    assert slot["contentLength"] == 6


def test_unknown_route_keeps_error_shape(client: TestClient) -> None:
    response = client.get("/nope")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


def test_request_id_header(client: TestClient) -> None:
    given = str(uuid.uuid4())
    assert client.get("/", headers={"X-Request-ID": given}).headers["X-Request-ID"] == given

    generated = client.get("/", headers={"X-Request-ID": "garbage"}).headers["X-Request-ID"]
    assert str(uuid.UUID(generated)) == generated


def test_health(client: TestClient) -> None:
    _submit(client, [])
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["totalJobs"] == 1
    assert set(body["fetch"]) == {"timeoutS", "maxWorkers", "userAgent"}
