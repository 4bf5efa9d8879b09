"""
Azure Blob Storage integration.
"""

from src.storage.blob import BlobStorageClient, get_blob_client
from src.storage.connection import ConnectionContext, parse_connection_string
from src.storage.copy import CopyOrchestrator
from src.storage.exceptions import (
    BlobStorageError,
    CopyCancelled,
    CopyFailed,
    CopyTimeout,
    InvalidBlobUrl,
    MalformedConnectionDescriptor,
    SasConflict,
)
from src.storage.paths import parse_blob_url, with_listing_parameters
from src.storage.sas import SasTokenBuilder

__all__ = [
    "BlobStorageClient",
    "get_blob_client",
    "ConnectionContext",
    "parse_connection_string",
    "CopyOrchestrator",
    "SasTokenBuilder",
    "parse_blob_url",
    "with_listing_parameters",
    # Errors
    "BlobStorageError",
    "CopyCancelled",
    "CopyFailed",
    "CopyTimeout",
    "InvalidBlobUrl",
    "MalformedConnectionDescriptor",
    "SasConflict",
]
