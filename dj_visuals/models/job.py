"""Job record Pydantic model and lifecycle rules."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobType(str, Enum):
    STYLES = "styles"
    TRACK_INFO = "track-info"
    IMAGE = "image"
    VIDEO = "video"


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})


def allowed_predecessors(status: Optional[JobStatus]) -> List[JobStatus]:
    """
    Statuses a job may be in for an update targeting ``status``.

    Terminal jobs accept no writes at all, so a field-only update
    (``status=None``) is limited to the two live states.
    """
    if status is None or status in TERMINAL_STATUSES:
        return [JobStatus.PENDING, JobStatus.PROCESSING]
    if status == JobStatus.PROCESSING:
        return [JobStatus.PENDING, JobStatus.PROCESSING]
    return [JobStatus.PENDING]


def can_transition(current: JobStatus, new: Optional[JobStatus]) -> bool:
    return current in allowed_predecessors(new)


class Job(BaseModel):
    """Tracks the lifecycle of one asynchronous generation request."""

    id: str = Field(min_length=1)
    type: JobType
    status: JobStatus = JobStatus.PENDING
    input_data: Dict[str, Any]
    output_data: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def task_id(self) -> Optional[str]:
        """Provider task id carried by a provisional or final output."""
        if not self.output_data:
            return None
        return self.output_data.get("taskId")

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Job":
        """Build a Job from a ``jobs`` table row."""
        return cls(
            id=row["id"],
            type=row["type"],
            status=row["status"],
            input_data=row.get("input_data") or {},
            output_data=row.get("output_data"),
            error_message=row.get("error_message"),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            completed_at=row.get("completed_at"),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "status": self.status.value,
            "input_data": self.input_data,
            "output_data": self.output_data,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    def to_wire(self) -> Dict[str, Any]:
        """camelCase shape returned across the HTTP boundary."""
        return {
            "jobId": self.id,
            "type": self.type.value,
            "status": self.status.value,
            "inputData": self.input_data,
            "outputData": self.output_data,
            "errorMessage": self.error_message,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "Job":
        return cls(
            id=data["jobId"],
            type=data["type"],
            status=data["status"],
            input_data=data.get("inputData") or {},
            output_data=data.get("outputData"),
            error_message=data.get("errorMessage"),
            created_at=data["createdAt"],
            updated_at=data["updatedAt"],
            completed_at=data.get("completedAt"),
        )
