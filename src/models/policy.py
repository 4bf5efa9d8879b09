"""
Container access policy models.
"""

from collections.abc import Iterable
from datetime import datetime
from enum import Enum
from typing import Any

from azure.storage.blob import AccessPolicy as SdkAccessPolicy
from pydantic import Field

from src.models.base import StorageModel


class SasPermission(str, Enum):
    """Single permission flag usable in a stored policy or SAS token."""

    READ = "r"
    ADD = "a"
    CREATE = "c"
    WRITE = "w"
    DELETE = "d"
    LIST = "l"


# The service only accepts permission strings in this order.
CANONICAL_PERMISSION_ORDER = "racwdl"


def canonical_permissions(permissions: Iterable[SasPermission | str]) -> str:
    """
    Render a set of permissions in canonical "racwdl" order.

    Args:
        permissions: SasPermission values or their single-letter codes

    Returns:
        Ordered permission string, e.g. {"w", "r"} -> "rw"
    """
    letters = {SasPermission(p).value for p in permissions}
    return "".join(letter for letter in CANONICAL_PERMISSION_ORDER if letter in letters)


class PublicAccessLevel(str, Enum):
    """Anonymous read access granted on a container."""

    NONE = "none"
    BLOB = "blob"
    CONTAINER = "container"

    def to_sdk(self) -> str | None:
        """Value expected by set_container_access_policy (None means private)."""
        if self is PublicAccessLevel.NONE:
            return None
        return self.value

    @classmethod
    def from_sdk(cls, value: Any) -> "PublicAccessLevel":
        value = getattr(value, "value", value)
        if not value or str(value).lower() == "off":
            return cls.NONE
        return cls(str(value).lower())


class AccessPolicy(StorageModel):
    """
    A named, time-bounded permission grant stored on a container.

    The permission string is sent as given. The service rejects strings that
    are not in canonical order, and identifiers that are empty; neither is
    checked locally.
    """

    id: str = Field(..., description="Signed identifier, unique within the container")
    permission: str = Field("", description="Permission letters, e.g. 'rw' or 'racwdl'")
    start: datetime | None = None
    expiry: datetime | None = None

    def to_sdk(self) -> SdkAccessPolicy:
        """Convert to the SDK's AccessPolicy value."""
        return SdkAccessPolicy(
            permission=self.permission or None,
            start=self.start,
            expiry=self.expiry,
        )

    @classmethod
    def from_signed_identifier(cls, identifier: Any) -> "AccessPolicy":
        """Create from a SignedIdentifier returned by get_container_access_policy."""
        policy = identifier.access_policy
        if policy is None:
            return cls(id=identifier.id)
        return cls(
            id=identifier.id,
            permission=policy.permission or "",
            start=policy.start or None,
            expiry=policy.expiry or None,
        )


def to_signed_identifiers(policies: Iterable[AccessPolicy]) -> dict[str, SdkAccessPolicy]:
    """Build the id -> AccessPolicy mapping the SDK writes as the container ACL."""
    return {policy.id: policy.to_sdk() for policy in policies}
