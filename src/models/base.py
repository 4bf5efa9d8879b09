"""
Common base models and utilities.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict


class StorageModel(BaseModel):
    """Base model for values exchanged with the storage service."""

    model_config = ConfigDict(
        populate_by_name=True,
    )


class FrozenStorageModel(StorageModel):
    """Immutable variant for values that must not change once built."""

    model_config = ConfigDict(frozen=True)


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)
