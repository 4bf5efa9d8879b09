"""
Pydantic models for storage values.
"""

from src.models.base import utc_now
from src.models.blob import BlobProperties, BlobUrlParts
from src.models.copy import CopyOperation, CopyResult, CopyStatus
from src.models.policy import (
    AccessPolicy,
    PublicAccessLevel,
    SasPermission,
    canonical_permissions,
    to_signed_identifiers,
)
from src.models.sas import SasDescriptor, SasResource

__all__ = [
    # Blob
    "BlobProperties",
    "BlobUrlParts",
    # Copy
    "CopyOperation",
    "CopyResult",
    "CopyStatus",
    # Policy
    "AccessPolicy",
    "PublicAccessLevel",
    "SasPermission",
    "canonical_permissions",
    "to_signed_identifiers",
    # SAS
    "SasDescriptor",
    "SasResource",
    # Helpers
    "utc_now",
]
