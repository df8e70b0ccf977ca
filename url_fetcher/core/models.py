from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
import uuid


class SlotStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    error = "error"


class JobStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    error = "error"
    partial = "partial"


@dataclass(frozen=True)
class Slot:
    """
    One submitted URL and what became of it.

    Slots are immutable; a fetch worker publishes its outcome by swapping the
    whole value in the job's slot list, so a reader holding a Slot always sees
    a status together with its matching fields.
    """
    url: str
    status: SlotStatus = SlotStatus.pending
    content_length: Optional[int] = None
    content: Optional[bytes] = field(default=None, repr=False)
    error: Optional[str] = None

    @classmethod
    def completed(cls, url: str, content: bytes, content_length: int) -> "Slot":
        return cls(url=url, status=SlotStatus.completed, content_length=content_length, content=content)

    @classmethod
    def failed(cls, url: str, message: str) -> "Slot":
        return cls(url=url, status=SlotStatus.error, error=message)

    @property
    def is_pending(self) -> bool:
        return self.status is SlotStatus.pending

    def to_api(self) -> dict:
        # content is only ever served by the /content endpoint
        d = {"url": self.url, "status": self.status.value}
        if self.status is SlotStatus.completed:
            d["contentLength"] = self.content_length
        elif self.status is SlotStatus.error:
            d["error"] = self.error
        return d


@dataclass
class JobSummary:
    job_id: str
    status: JobStatus
    url_count: int
    completed_count: int
    error_count: int

    @property
    def pending_count(self) -> int:
        return self.url_count - self.completed_count - self.error_count

    def to_api(self) -> dict:
        return {
            "jobId": self.job_id,
            "status": self.status.value,
            "urlCount": self.url_count,
            "completedCount": self.completed_count,
            "errorCount": self.error_count,
        }


def overall_status(slots: List[Slot]) -> JobStatus:
    completed = sum(1 for s in slots if s.status is SlotStatus.completed)
    errors = sum(1 for s in slots if s.status is SlotStatus.error)
    if completed + errors < len(slots):
        return JobStatus.pending
    if errors and not completed:
        return JobStatus.error
    if errors:
        return JobStatus.partial
    return JobStatus.completed


@dataclass
class Job:
    created_at: int  # insertion ordinal, not a wall-clock time
    slots: List[Slot]
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def summarize(self, slots: Optional[List[Slot]] = None) -> JobSummary:
        slots = self.slots if slots is None else slots
        return JobSummary(
            job_id=self.id,
            status=overall_status(slots),
            url_count=len(slots),
            completed_count=sum(1 for s in slots if s.status is SlotStatus.completed),
            error_count=sum(1 for s in slots if s.status is SlotStatus.error),
        )
