"""
Blob metadata and addressing models.
"""

from datetime import datetime
from typing import Any

from src.models.base import FrozenStorageModel

MEBIBYTE = 1024 * 1024


class BlobProperties(FrozenStorageModel):
    """Subset of blob properties exposed by the client."""

    name: str
    content_length: int
    content_type: str | None = None
    created_at: datetime | None = None
    last_modified_at: datetime | None = None
    etag: str | None = None

    @property
    def size_mib(self) -> float:
        """Content length in mebibytes."""
        return self.content_length / MEBIBYTE

    @classmethod
    def from_sdk(cls, props: Any) -> "BlobProperties":
        """Create from the SDK's BlobProperties."""
        content_settings = getattr(props, "content_settings", None)
        return cls(
            name=props.name,
            content_length=props.size or 0,
            content_type=content_settings.content_type if content_settings else None,
            created_at=props.creation_time,
            last_modified_at=props.last_modified,
            etag=props.etag,
        )


class BlobUrlParts(FrozenStorageModel):
    """Account, container and blob named by a blob URL."""

    account_name: str
    container_name: str
    blob_name: str
