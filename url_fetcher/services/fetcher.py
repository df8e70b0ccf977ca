# url_fetcher/services/fetcher.py
from __future__ import annotations
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Mapping, Optional, Protocol
import requests

from url_fetcher.config import get_settings


class FetchError(Exception):
    """An outbound GET that did not yield a body. str(exc) is the slot's error message."""


@dataclass(frozen=True)
class FetchResponse:
    content: bytes
    declared_length: Optional[int] = None  # parsed Content-Length, if usable


class Fetcher(Protocol):
    def fetch(self, url: str) -> FetchResponse: ...


def parse_content_length(headers: Mapping[str, str]) -> Optional[int]:
    raw = headers.get("content-length")
    if raw is None:
        return None
    raw = raw.strip()
    if not raw.isdecimal():
        return None
    return int(raw)


class RequestsFetcher:
    def __init__(
        self,
        timeout_s: float | None = None,
        user_agent: str | None = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        settings = get_settings()
        self.timeout_s = settings.FETCH_TIMEOUT_S if timeout_s is None else timeout_s
        self.user_agent = user_agent or settings.FETCH_USER_AGENT
        self.session_factory = session_factory

    def fetch(self, url: str) -> FetchResponse:
        # one session per fetch: no cookies or pooled connections shared across jobs
        try:
            with self.session_factory() as s:
                r = s.get(url, timeout=self.timeout_s, headers={"User-Agent": self.user_agent})
        except requests.Timeout as e:
            raise FetchError(f"timeout of {self.timeout_s:g}s exceeded") from e
        except requests.RequestException as e:
            raise FetchError(str(e) or type(e).__name__) from e

        if not 200 <= r.status_code < 300:
            raise FetchError(f"Request failed with status code {r.status_code}")

        return FetchResponse(content=r.content, declared_length=parse_content_length(r.headers))


@lru_cache(maxsize=1)
def get_fetcher() -> Fetcher:
    return RequestsFetcher()
