"""
Azure Blob Storage client wrapper.
"""

import mimetypes
import threading
from collections.abc import Iterable, Iterator
from datetime import datetime, timedelta
from functools import lru_cache
from pathlib import Path
from typing import Any

import structlog
from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.identity import DefaultAzureCredential
from azure.storage.blob import BlobServiceClient, ContentSettings

from src.config import get_settings
from src.models import (
    AccessPolicy,
    BlobProperties,
    CopyResult,
    PublicAccessLevel,
    SasDescriptor,
    SasPermission,
    SasResource,
    to_signed_identifiers,
)
from src.storage.connection import ConnectionContext, parse_connection_string
from src.storage.copy import CopyOrchestrator
from src.storage.paths import append_sas, with_listing_parameters
from src.storage.sas import SasTokenBuilder

logger = structlog.get_logger(__name__)


class BlobStorageClient:
    """
    Client for Azure Blob Storage operations.

    Supports both connection string and Managed Identity authentication.
    SAS generation needs an account key, so it is only available when the
    client was built from a connection string that carries one.

    Errors from the service propagate unchanged, except in the
    ``*_if_absent`` / ``*_if_present`` methods, which turn "already exists" /
    "not found" into a False return.
    """

    def __init__(
        self,
        connection_string: str | None = None,
        account_url: str | None = None,
        service_client: Any = None,
        sas_builder: SasTokenBuilder | None = None,
        copy_orchestrator: CopyOrchestrator | None = None,
    ):
        self.context: ConnectionContext | None = None

        if connection_string:
            self.context = parse_connection_string(connection_string)
            self.service_client = service_client or BlobServiceClient(
                self.context.blob_service_url,
                credential=self.context.credential(),
            )
        elif account_url:
            # Use Managed Identity
            self.service_client = service_client or BlobServiceClient(
                account_url, credential=DefaultAzureCredential()
            )
        elif service_client is not None:
            self.service_client = service_client
        else:
            raise ValueError("Either connection_string or account_url must be provided")

        self._sas_builder = sas_builder
        self.copy_orchestrator = copy_orchestrator or CopyOrchestrator(self.service_client)

    # Containers

    def create_container_if_absent(self, container_name: str) -> bool:
        """
        Create a container unless it already exists.

        Container names may contain only lowercase letters, numbers and
        hyphens, must begin and end with a letter or number, and cannot
        contain two consecutive hyphens. The service enforces this.

        Returns:
            True if created, False if it already existed
        """
        try:
            self.service_client.get_container_client(container_name).create_container()
        except ResourceExistsError:
            logger.debug("Container already exists", container=container_name)
            return False
        logger.info("Created container", container=container_name)
        return True

    def delete_container_if_present(self, container_name: str) -> bool:
        """
        Delete a container and every blob in it.

        Returns:
            True if deleted, False if it didn't exist
        """
        try:
            self.service_client.get_container_client(container_name).delete_container()
        except ResourceNotFoundError:
            logger.debug("Container not found", container=container_name)
            return False
        logger.info("Deleted container", container=container_name)
        return True

    def get_container_url(self, container_name: str) -> str:
        """Get the URL for a container."""
        return self.service_client.get_container_client(container_name).url

    # Access policies

    def _get_acl(self, container_name: str) -> tuple[PublicAccessLevel, list[AccessPolicy]]:
        acl = self.service_client.get_container_client(container_name).get_container_access_policy()
        level = PublicAccessLevel.from_sdk(acl.get("public_access"))
        policies = [
            AccessPolicy.from_signed_identifier(identifier)
            for identifier in acl.get("signed_identifiers") or []
        ]
        return level, policies

    def _set_acl(
        self,
        container_name: str,
        level: PublicAccessLevel,
        policies: Iterable[AccessPolicy],
    ) -> None:
        # The service replaces both the policy list and the public level on every write.
        self.service_client.get_container_client(container_name).set_container_access_policy(
            signed_identifiers=to_signed_identifiers(policies),
            public_access=level.to_sdk(),
        )

    def get_policies(self, container_name: str) -> list[AccessPolicy]:
        """Get the stored access policies of a container."""
        _, policies = self._get_acl(container_name)
        return policies

    def set_policies(self, container_name: str, policies: list[AccessPolicy]) -> None:
        """
        Replace the container's stored access policies.

        Every policy needs an id, and its permission string must follow the
        order racwdl (read, add, create, write, delete, list). Violations are
        reported by the service as an invalid XML document (HTTP 400).
        The current public access level is kept.
        """
        level, _ = self._get_acl(container_name)
        self._set_acl(container_name, level, policies)
        logger.info(
            "Set access policies",
            container=container_name,
            policies=[policy.id for policy in policies],
        )

    def remove_policy_if_present(self, container_name: str, policy_id: str) -> bool:
        """
        Remove one stored access policy by id.

        Reads the full policy list, drops the matching entry and writes the
        rest back. Concurrent writers can overwrite each other.

        Returns:
            True if a policy was removed, False if none had that id
        """
        level, policies = self._get_acl(container_name)
        remaining = [policy for policy in policies if policy.id != policy_id]
        if len(remaining) == len(policies):
            logger.debug("Access policy not found", container=container_name, policy_id=policy_id)
            return False

        self._set_acl(container_name, level, remaining)
        logger.info("Removed access policy", container=container_name, policy_id=policy_id)
        return True

    def set_public_access_level(
        self,
        container_name: str,
        level: PublicAccessLevel | str,
    ) -> None:
        """Set anonymous access for a container, keeping its stored policies."""
        level = PublicAccessLevel(level)
        _, policies = self._get_acl(container_name)
        self._set_acl(container_name, level, policies)
        logger.info("Set public access level", container=container_name, level=level.value)

    def remove_public_access(self, container_name: str) -> None:
        """Make a container private."""
        self.set_public_access_level(container_name, PublicAccessLevel.NONE)

    # Blobs

    def upload_blob(
        self,
        container_name: str,
        blob_name: str,
        source_path: str | Path,
        overwrite: bool = True,
        content_type: str | None = None,
    ) -> str:
        """
        Upload a local file as a blob.

        The blob name need not match the file name. Prefix it with folder
        names ("folder1/uploaded.txt") to place it in a virtual folder.

        Args:
            container_name: Target container
            blob_name: Blob name within the container
            source_path: Local file to upload
            overwrite: Whether to overwrite an existing blob
            content_type: MIME type; guessed from the file name if omitted

        Returns:
            Full blob URL
        """
        source_path = Path(source_path)
        blob_client = self.service_client.get_blob_client(container_name, blob_name)

        content_type = content_type or mimetypes.guess_type(source_path.name)[0]
        content_settings = ContentSettings(content_type=content_type) if content_type else None

        with open(source_path, "rb") as data:
            blob_client.upload_blob(
                data,
                overwrite=overwrite,
                content_settings=content_settings,
            )

        logger.info("Uploaded blob", container=container_name, blob=blob_name, source=str(source_path))
        return blob_client.url

    def download_blob(
        self,
        container_name: str,
        blob_name: str,
        dest_path: str | Path,
    ) -> int:
        """
        Download a blob into a local file, replacing it if present.

        Returns:
            Number of bytes written
        """
        blob_client = self.service_client.get_blob_client(container_name, blob_name)
        download_stream = blob_client.download_blob()

        with open(dest_path, "wb") as output_file:
            written = download_stream.readinto(output_file)

        logger.info("Downloaded blob", container=container_name, blob=blob_name, bytes=written)
        return written

    def delete_blob_if_present(self, container_name: str, blob_name: str) -> bool:
        """
        Delete a blob.

        Returns:
            True if deleted, False if didn't exist
        """
        try:
            self.service_client.get_blob_client(container_name, blob_name).delete_blob()
        except ResourceNotFoundError:
            logger.debug("Blob not found", container=container_name, blob=blob_name)
            return False
        logger.info("Deleted blob", container=container_name, blob=blob_name)
        return True

    def get_properties(self, container_name: str, blob_name: str) -> BlobProperties:
        """Get size, content type and timestamps of a blob."""
        blob_client = self.service_client.get_blob_client(container_name, blob_name)
        return BlobProperties.from_sdk(blob_client.get_blob_properties())

    def list_blobs(self, container_name: str, prefix: str | None = None) -> Iterator[str]:
        """
        Lazily yield blob names in a container.

        Pages are fetched from the service as the iterator advances. Names are
        returned as stored, including any "folder/" prefix. To start over,
        call again.
        """
        container_client = self.service_client.get_container_client(container_name)
        for blob in container_client.list_blobs(name_starts_with=prefix):
            yield blob.name

    def get_blob_url(self, container_name: str, blob_name: str) -> str:
        """Get the URL for a blob."""
        return self.service_client.get_blob_client(container_name, blob_name).url

    # Shared access signatures

    @property
    def sas_builder(self) -> SasTokenBuilder:
        """SAS builder signing with the account key from the connection string."""
        if self._sas_builder is None:
            if self.context is None:
                raise ValueError("SAS generation requires connection string")
            account_name, account_key = self.context.signing_credentials()
            settings = get_settings()
            self._sas_builder = SasTokenBuilder(
                account_name,
                account_key,
                start_skew=timedelta(minutes=settings.sas_start_skew_minutes),
                ttl=timedelta(minutes=settings.sas_ttl_minutes),
            )
        return self._sas_builder

    def generate_blob_sas(
        self,
        container_name: str,
        blob_name: str,
        permissions: Iterable[SasPermission | str] = (SasPermission.READ,),
        start: datetime | None = None,
        expiry: datetime | None = None,
        policy_id: str | None = None,
    ) -> str:
        """
        Generate a SAS token for one blob.

        Pass ``policy_id`` alone for a token governed by a stored access
        policy; pass permissions (and optionally start/expiry) for an ad-hoc
        token. Combining a policy with start/expiry yields a token the
        service refuses.
        """
        descriptor = SasDescriptor(
            resource=SasResource.BLOB,
            container_name=container_name,
            blob_name=blob_name,
            permissions=frozenset() if policy_id else frozenset(permissions),
            start=start,
            expiry=expiry,
            policy_id=policy_id,
        )
        return self.sas_builder.build(descriptor)

    def generate_container_sas(
        self,
        container_name: str,
        permissions: Iterable[SasPermission | str] = (SasPermission.READ, SasPermission.LIST),
        start: datetime | None = None,
        expiry: datetime | None = None,
        policy_id: str | None = None,
    ) -> str:
        """Generate a SAS token for a container. See generate_blob_sas."""
        descriptor = SasDescriptor(
            resource=SasResource.CONTAINER,
            container_name=container_name,
            permissions=frozenset() if policy_id else frozenset(permissions),
            start=start,
            expiry=expiry,
            policy_id=policy_id,
        )
        return self.sas_builder.build(descriptor)

    def get_blob_sas_url(self, container_name: str, blob_name: str, **sas_options: Any) -> str:
        """Get a blob URL with a SAS token appended."""
        token = self.generate_blob_sas(container_name, blob_name, **sas_options)
        return append_sas(self.get_blob_url(container_name, blob_name), token)

    def get_container_sas_url(
        self,
        container_name: str,
        listing: bool = False,
        **sas_options: Any,
    ) -> str:
        """
        Get a container URL with a SAS token appended.

        With ``listing=True`` the URL also carries restype=container&comp=list,
        so opening it in a browser lists the container's blobs.
        """
        token = self.generate_container_sas(container_name, **sas_options)
        if listing:
            token = with_listing_parameters(token)
        return append_sas(self.get_container_url(container_name), token)

    # Copy

    def copy_blob(
        self,
        source_url: str,
        destination_url: str,
        poll_interval: float | None = None,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> CopyResult:
        """
        Copy a blob between containers or accounts and wait for it to finish.

        A SAS token in ``source_url`` authorizes reading the source; this
        client's credential is used for the destination. Prefer URLs without
        a token when the connection string covers both sides, so the copy
        cannot outlive the token's expiry.

        Args:
            source_url: Source blob URL
            destination_url: Destination blob URL
            poll_interval: Seconds between status checks (settings default)
            timeout: Seconds to wait overall (settings default)
            cancel_event: Set it to stop waiting

        Raises:
            CopyTimeout: if still pending when the timeout elapses
        """
        settings = get_settings()
        return self.copy_orchestrator.start_and_await_copy(
            source_url,
            destination_url,
            poll_interval=poll_interval if poll_interval is not None else settings.copy_poll_interval,
            overall_timeout=timeout if timeout is not None else settings.copy_timeout,
            cancel_event=cancel_event,
        )

    def abort_copy(self, container_name: str, blob_name: str, copy_id: str) -> None:
        """Abort a copy that is still pending on the service."""
        self.copy_orchestrator.abort_copy(container_name, blob_name, copy_id)


@lru_cache
def get_blob_client() -> BlobStorageClient:
    """Get cached blob storage client."""
    settings = get_settings()
    return BlobStorageClient(
        connection_string=settings.azure_connection_string_str,
        account_url=settings.azure_storage_account_url,
    )
