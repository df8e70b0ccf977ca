from __future__ import annotations

import itertools
import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from threading import RLock
from typing import Callable, Dict, List, Optional, Set

from url_fetcher.config import get_settings
from url_fetcher.services.fetcher import FetchError, Fetcher, get_fetcher
from .models import Job, JobSummary, Slot, SlotStatus

logger = logging.getLogger("url_fetcher.registry")


class JobNotFoundError(LookupError):
    """Unknown job, slot index out of range, or slot content not available."""


class JobRegistry:
    """
    Process-wide in-memory store of fetch jobs.

    The job map only grows. Each slot is written at most once, by the worker
    fetching its URL; writes and reads both go through ``_lock`` and a write
    replaces the whole (immutable) Slot, so readers never see a half-updated one.
    Fetches run on a thread pool owned by the registry, not by the request that
    submitted them.
    """

    def __init__(
        self,
        fetcher: Optional[Fetcher] = None,
        max_workers: Optional[int] = None,
        error_max_chars: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self._fetcher_factory: Callable[[], Fetcher] = (lambda: fetcher) if fetcher is not None else get_fetcher
        self._max_workers = max_workers or settings.FETCH_MAX_WORKERS
        limit = settings.FETCH_ERROR_MAX_CHARS if error_max_chars is None else error_max_chars
        self._error_max_chars = max(1, limit)
        self._jobs: Dict[str, Job] = {}
        self._ordinal = itertools.count()
        self._lock = RLock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._inflight: Set[Future] = set()

    # ---- writes ----

    def submit(self, urls: List[str]) -> str:
        slots = [Slot(url=u) for u in urls]
        with self._lock:
            job = Job(created_at=next(self._ordinal), slots=slots)
            self._jobs[job.id] = job
            for index, url in enumerate(urls):
                self._schedule(job.id, index, url)
        logger.info("job=%s submitted urls=%d", job.id, len(urls))
        return job.id

    def _schedule(self, job_id: str, index: int, url: str) -> None:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers, thread_name_prefix="fetch"
            )
        fut = self._executor.submit(self._run_fetch, job_id, index, url)
        self._inflight.add(fut)
        fut.add_done_callback(self._forget)

    def _forget(self, fut: Future) -> None:
        with self._lock:
            self._inflight.discard(fut)

    def _run_fetch(self, job_id: str, index: int, url: str) -> None:
        try:
            resp = self._fetcher_factory().fetch(url)
        except FetchError as e:
            self._settle(job_id, index, Slot.failed(url, self._short(str(e))))
            logger.warning("job=%s index=%d url=%s fetch failed: %s", job_id, index, url, e)
            return
        except Exception as e:  # noqa: BLE001
            msg = str(e) or type(e).__name__
            self._settle(job_id, index, Slot.failed(url, self._short(msg)))
            logger.exception("job=%s index=%d url=%s unexpected fetch error", job_id, index, url)
            return

        length = resp.declared_length if resp.declared_length is not None else len(resp.content)
        self._settle(job_id, index, Slot.completed(url, resp.content, length))
        logger.debug("job=%s index=%d url=%s completed bytes=%d", job_id, index, url, length)

    def _settle(self, job_id: str, index: int, slot: Slot) -> None:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return
            if not job.slots[index].is_pending:
                logger.warning("job=%s index=%d already settled; dropping %s", job_id, index, slot.status.value)
                return
            job.slots[index] = slot

    def _short(self, message: str) -> str:
        if len(message) <= self._error_max_chars:
            return message
        return message[: self._error_max_chars - 1] + "…"

    # ---- reads ----

    def _require(self, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(f"Job with ID {job_id} not found.")
        return job

    def get_results(self, job_id: str) -> List[dict]:
        with self._lock:
            slots = list(self._require(job_id).slots)
        return [s.to_api() for s in slots]

    def get_all_jobs(self) -> List[JobSummary]:
        with self._lock:
            snapshot = [(job, list(job.slots)) for job in self._jobs.values()]
        snapshot.sort(key=lambda pair: pair[0].created_at, reverse=True)
        return [job.summarize(slots) for job, slots in snapshot]

    def get_result_content(self, job_id: str, index: int) -> bytes:
        with self._lock:
            job = self._require(job_id)
            if index < 0 or index >= len(job.slots):
                raise JobNotFoundError(f"Result with index {index} not found for job {job_id}.")
            slot = job.slots[index]
        if slot.status is not SlotStatus.completed or slot.content is None:
            raise JobNotFoundError(f"Result with index {index} is not completed yet or has no content.")
        return slot.content

    def job_count(self) -> int:
        with self._lock:
            return len(self._jobs)

    # ---- lifecycle ----

    def drain(self, timeout: Optional[float] = None) -> bool:
        """Wait for every scheduled fetch to finish. Returns False on timeout."""
        with self._lock:
            pending = set(self._inflight)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait_for_fetches: bool = False) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait_for_fetches, cancel_futures=not wait_for_fetches)


jobs = JobRegistry()


def get_registry() -> JobRegistry:
    return jobs
