"""
Shared access signature request model.
"""

from datetime import datetime
from enum import Enum

from pydantic import Field, model_validator

from src.models.base import FrozenStorageModel
from src.models.policy import SasPermission


class SasResource(str, Enum):
    """Resource kind a SAS token is scoped to."""

    BLOB = "blob"
    CONTAINER = "container"


class SasDescriptor(FrozenStorageModel):
    """
    A request to mint a shared access signature.

    Validity comes either from an explicit start/expiry window or from a
    stored access policy referenced by ``policy_id``. Supplying both is not
    rejected here; the service refuses such tokens when they are used.
    """

    resource: SasResource
    container_name: str = Field(..., min_length=1)
    blob_name: str | None = None
    permissions: frozenset[SasPermission] = Field(default_factory=frozenset)
    start: datetime | None = None
    expiry: datetime | None = None
    policy_id: str | None = None

    @model_validator(mode="after")
    def _check_blob_name(self) -> "SasDescriptor":
        if self.resource is SasResource.BLOB and not self.blob_name:
            raise ValueError("blob_name is required for a blob SAS")
        return self

    @property
    def has_explicit_window(self) -> bool:
        return self.start is not None or self.expiry is not None

    @property
    def has_conflict(self) -> bool:
        """True when both a time window and a policy reference are present."""
        return self.has_explicit_window and bool(self.policy_id)
