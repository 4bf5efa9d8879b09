"""
Shared access signature generation.
"""

from collections.abc import Callable
from datetime import datetime, timedelta

import structlog
from azure.storage.blob import generate_blob_sas, generate_container_sas

from src.models import SasDescriptor, SasResource, canonical_permissions, utc_now
from src.storage.exceptions import SasConflict

logger = structlog.get_logger(__name__)


class SasTokenBuilder:
    """
    Builds signed SAS query strings with an account key.

    Ad-hoc tokens (no policy id) without an explicit window get one from the
    injected clock: start = now - start_skew, expiry = now + ttl. The start
    is moved back to tolerate clock drift between client and service.

    Policy-based tokens take their validity from the stored policy. If a
    descriptor also carries start/expiry, the token is still produced (the
    service refuses it at use time) and a warning is logged. With
    ``strict=True`` a SasConflict is raised instead.
    """

    def __init__(
        self,
        account_name: str,
        account_key: str,
        clock: Callable[[], datetime] = utc_now,
        start_skew: timedelta = timedelta(minutes=2),
        ttl: timedelta = timedelta(minutes=10),
        strict: bool = False,
    ):
        self.account_name = account_name
        self._account_key = account_key
        self.clock = clock
        self.start_skew = start_skew
        self.ttl = ttl
        self.strict = strict

    def _window(self, descriptor: SasDescriptor) -> tuple[datetime | None, datetime | None]:
        if descriptor.policy_id or descriptor.has_explicit_window:
            return descriptor.start, descriptor.expiry
        now = self.clock()
        return now - self.start_skew, now + self.ttl

    def build(self, descriptor: SasDescriptor) -> str:
        """
        Produce the signed query string for a descriptor.

        Identical descriptors and clock readings give byte-identical tokens.

        Returns:
            Query string without a leading "?", e.g. "st=...&se=...&sp=rw&sv=...&sr=b&sig=..."
        """
        if descriptor.has_conflict:
            if self.strict:
                raise SasConflict(descriptor.policy_id)
            logger.warning(
                "SAS has both a time window and a policy id; the service will reject it",
                container=descriptor.container_name,
                blob=descriptor.blob_name,
                policy_id=descriptor.policy_id,
            )

        start, expiry = self._window(descriptor)
        permission = canonical_permissions(descriptor.permissions) or None

        if descriptor.resource is SasResource.BLOB:
            token = generate_blob_sas(
                account_name=self.account_name,
                container_name=descriptor.container_name,
                blob_name=descriptor.blob_name,
                account_key=self._account_key,
                permission=permission,
                start=start,
                expiry=expiry,
                policy_id=descriptor.policy_id,
            )
        else:
            token = generate_container_sas(
                account_name=self.account_name,
                container_name=descriptor.container_name,
                account_key=self._account_key,
                permission=permission,
                start=start,
                expiry=expiry,
                policy_id=descriptor.policy_id,
            )

        logger.debug(
            "Generated SAS token",
            resource=descriptor.resource.value,
            container=descriptor.container_name,
            blob=descriptor.blob_name,
            policy_id=descriptor.policy_id,
        )
        return token
