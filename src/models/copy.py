"""
Server-side copy operation models.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from src.models.base import FrozenStorageModel, StorageModel, utc_now


class CopyStatus(str, Enum):
    """Status of a server-side blob copy."""

    NOT_STARTED = "not_started"
    PENDING = "pending"
    SUCCEEDED = "success"
    FAILED = "failed"
    ABORTED = "aborted"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self not in (CopyStatus.NOT_STARTED, CopyStatus.PENDING)

    @classmethod
    def from_sdk(cls, value: Any) -> "CopyStatus":
        """Map the service's copy status ("pending", "success", ...) to CopyStatus."""
        value = getattr(value, "value", value)
        if value is None:
            return cls.NOT_STARTED
        return cls(str(value).lower())


class CopyOperation(StorageModel):
    """
    Caller-owned record of one copy from a source URL into a destination blob.

    Only moves forward: NOT_STARTED -> PENDING -> terminal.
    """

    source_url: str
    container_name: str
    blob_name: str
    copy_id: str | None = None
    status: CopyStatus = Field(default=CopyStatus.NOT_STARTED)
    status_description: str | None = None
    polls: int = 0
    started_at: datetime | None = None
    last_polled_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def start(self, copy_id: str | None, status: CopyStatus) -> None:
        """Record the service's answer to the start-copy request."""
        if self.status is not CopyStatus.NOT_STARTED:
            raise ValueError(f"Copy already started (status {self.status.value})")
        self.copy_id = copy_id
        self.status = status if status is not CopyStatus.NOT_STARTED else CopyStatus.PENDING
        self.started_at = utc_now()

    def record_poll(self, status: CopyStatus, description: str | None = None) -> None:
        """Record the outcome of one status query."""
        if self.is_terminal:
            raise ValueError(f"Copy already finished (status {self.status.value})")
        self.polls += 1
        self.last_polled_at = utc_now()
        self.status = status
        self.status_description = description

    def cancel(self) -> None:
        """Mark the local wait as cancelled; the server-side copy may continue."""
        if self.is_terminal:
            raise ValueError(f"Copy already finished (status {self.status.value})")
        self.status = CopyStatus.CANCELLED

    def to_result(self) -> "CopyResult":
        error_detail = None
        if self.status in (CopyStatus.FAILED, CopyStatus.ABORTED):
            error_detail = self.status_description or self.status.value
        return CopyResult(
            status=self.status,
            copy_id=self.copy_id,
            error_detail=error_detail,
            polls=self.polls,
        )


class CopyResult(FrozenStorageModel):
    """Outcome of waiting on a copy operation."""

    status: CopyStatus
    copy_id: str | None = None
    error_detail: str | None = None
    polls: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status is CopyStatus.SUCCEEDED

    @property
    def cancelled(self) -> bool:
        return self.status is CopyStatus.CANCELLED

    def raise_for_status(self) -> "CopyResult":
        """Raise CopyFailed or CopyCancelled unless the copy succeeded."""
        from src.storage.exceptions import CopyCancelled, CopyFailed

        if self.cancelled:
            raise CopyCancelled(self.copy_id)
        if not self.succeeded:
            raise CopyFailed(self.copy_id, self.error_detail)
        return self
