import logging
import time
import uuid
from typing import Callable
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from url_fetcher.config import get_settings

logger = logging.getLogger("url_fetcher.request")

REQUEST_ID_HEADER = "X-Request-ID"


def configure_logging(level: str | None = None) -> None:
    # Configure root logger once (simple, readable format)
    logging.basicConfig(
        level=(level or get_settings().LOG_LEVEL),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def _request_id(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER, "")
    try:
        return str(uuid.UUID(incoming))
    except ValueError:
        return str(uuid.uuid4())


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        start = time.perf_counter()
        client = request.client.host if request.client else "-"
        method = request.method
        path = request.url.path
        request_id = _request_id(request)
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000.0
            logger.info(
                "client=%s method=%s path=%s status=%s duration_ms=%.2f request_id=%s",
                client, method, path, response.status_code, duration_ms, request_id
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000.0
            logger.exception(
                "client=%s method=%s path=%s status=%s duration_ms=%.2f request_id=%s UNHANDLED",
                client, method, path, 500, duration_ms, request_id
            )
            raise


def register_request_logging(app):
    app.add_middleware(RequestLogMiddleware)
