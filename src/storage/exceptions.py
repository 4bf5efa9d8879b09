"""
Errors raised by the storage client itself.

Errors reported by the service (ContainerNotFound, BlobNotFound, an invalid
access policy XML document, ...) are not wrapped: they surface as the
azure.core exceptions the SDK raises, with the service's error code attached.
"""


class BlobStorageError(Exception):
    """Base class for locally raised storage errors."""


class MalformedConnectionDescriptor(BlobStorageError, ValueError):

    def __init__(self, message: str):
        super().__init__(f"Malformed connection string: {message}")


class InvalidBlobUrl(BlobStorageError, ValueError):

    def __init__(self, url: str, reason: str):
        self.url = url
        super().__init__(f"Invalid blob URL {url!r}: {reason}")


class SasConflict(BlobStorageError):
    """A SAS request carries both an explicit time window and a policy id."""

    def __init__(self, policy_id: str):
        self.policy_id = policy_id
        super().__init__(
            f"SAS references access policy {policy_id!r} and also sets start/expiry; "
            "the service rejects such tokens"
        )


class CopyTimeout(BlobStorageError, TimeoutError):
    """The copy did not reach a terminal state in time. It may still be running."""

    def __init__(self, copy_id: str | None, destination: str, timeout: float):
        self.copy_id = copy_id
        self.destination = destination
        self.timeout = timeout
        super().__init__(f"Copy {copy_id} to {destination} still pending after {timeout}s")


class CopyFailed(BlobStorageError):

    def __init__(self, copy_id: str | None, detail: str | None):
        self.copy_id = copy_id
        self.detail = detail
        super().__init__(f"Copy {copy_id} failed: {detail}")


class CopyCancelled(BlobStorageError):

    def __init__(self, copy_id: str | None):
        self.copy_id = copy_id
        super().__init__(f"Waiting on copy {copy_id} was cancelled")
