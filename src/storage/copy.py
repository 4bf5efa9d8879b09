"""
Server-side blob copy: start the copy, then poll its status until it ends.
"""

import threading
import time
from collections.abc import Callable
from typing import Any

import structlog
from tenacity import RetryError, Retrying, retry_if_result

from src.models import CopyOperation, CopyResult, CopyStatus
from src.storage.exceptions import CopyTimeout, InvalidBlobUrl
from src.storage.paths import has_sas_token, parse_blob_url

logger = structlog.get_logger(__name__)


class CopyOrchestrator:
    """
    Drives one copy from NOT_STARTED through PENDING to a terminal status.

    The start request returns as soon as the service has queued the copy.
    The orchestrator then sleeps ``poll_interval`` (cut short so it never
    passes the deadline), reads the destination blob's copy status, and
    repeats until the status is terminal, the overall timeout is reached,
    or the caller sets the cancel event.

    Outcomes:
        success            -> CopyResult(status=SUCCEEDED)
        failed / aborted   -> CopyResult(status=FAILED/ABORTED, error_detail=...)
        cancel event set   -> CopyResult(status=CANCELLED)
        deadline reached   -> CopyTimeout is raised

    Nothing is retried: a failed copy is reported once, and a timed out copy
    may still be running on the service.
    """

    def __init__(
        self,
        service_client: Any,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Any] | None = None,
    ):
        """
        Args:
            service_client: BlobServiceClient holding the destination account's credential
            clock: Monotonic clock in seconds, used for the overall timeout
            sleep: Sleep function; defaults to waiting on the cancel event so
                cancellation wakes a sleeping poll
        """
        self.service_client = service_client
        self.clock = clock
        self.sleep = sleep

    def start_and_await_copy(
        self,
        source_url: str,
        destination_url: str,
        poll_interval: float = 10.0,
        overall_timeout: float | None = 600.0,
        cancel_event: threading.Event | None = None,
    ) -> CopyResult:
        """
        Copy a blob and wait for the service to finish.

        A SAS token in ``source_url`` is what authorizes reading the source;
        the write side always uses this client's own credential for the
        account named in ``destination_url``.

        Args:
            source_url: Full URL of the source blob, optionally with a SAS token
            destination_url: Full URL of the destination blob (query string ignored)
            poll_interval: Seconds between status queries
            overall_timeout: Seconds to wait before giving up, None to wait forever
            cancel_event: Set it to stop waiting

        Raises:
            CopyTimeout: if the copy is still pending when the timeout elapses
            InvalidBlobUrl: if ``destination_url`` names an account other than this client's
        """
        destination = parse_blob_url(destination_url)
        account_name = self.service_client.account_name
        if destination.account_name.lower() != account_name.lower():
            raise InvalidBlobUrl(
                destination_url,
                f"destination account {destination.account_name!r} "
                f"is not the client account {account_name!r}",
            )
        cancel_event = cancel_event or threading.Event()
        sleep = self.sleep or cancel_event.wait

        blob_client = self.service_client.get_blob_client(
            destination.container_name, destination.blob_name
        )
        operation = CopyOperation(
            source_url=source_url,
            container_name=destination.container_name,
            blob_name=destination.blob_name,
        )

        started = blob_client.start_copy_from_url(source_url)
        operation.start(started.get("copy_id"), CopyStatus.from_sdk(started.get("copy_status")))
        log = logger.bind(
            copy_id=operation.copy_id,
            container=operation.container_name,
            blob=operation.blob_name,
        )
        log.info(
            "Copy started",
            status=operation.status.value,
            source_has_sas=has_sas_token(source_url),
        )

        if operation.is_terminal:
            return self._finish(operation, log)

        deadline = None if overall_timeout is None else self.clock() + overall_timeout

        def next_wait(retry_state: Any = None) -> float:
            # Never sleep past the deadline; the last poll lands on it.
            if deadline is None:
                return poll_interval
            return max(0.0, min(poll_interval, deadline - self.clock()))

        def poll() -> CopyStatus:
            if cancel_event.is_set():
                operation.cancel()
                return operation.status
            copy = blob_client.get_blob_properties().copy
            operation.record_poll(CopyStatus.from_sdk(copy.status), copy.status_description)
            log.debug("Polled copy status", status=operation.status.value, polls=operation.polls)
            return operation.status

        def deadline_reached(retry_state: Any) -> bool:
            return deadline is not None and self.clock() >= deadline

        retrying = Retrying(
            retry=retry_if_result(lambda status: status is CopyStatus.PENDING),
            wait=next_wait,
            stop=deadline_reached,
            sleep=sleep,
        )

        sleep(next_wait())
        try:
            retrying(poll)
        except RetryError:
            log.warning("Copy still pending at timeout", polls=operation.polls)
            raise CopyTimeout(operation.copy_id, destination_url, overall_timeout or 0.0) from None

        return self._finish(operation, log)

    @staticmethod
    def _finish(operation: CopyOperation, log: Any) -> CopyResult:
        result = operation.to_result()
        if result.succeeded:
            log.info("Copy completed", polls=result.polls)
        elif result.cancelled:
            log.info("Stopped waiting on copy", polls=result.polls)
        else:
            log.error(
                "Copy failed",
                status=result.status.value,
                error=result.error_detail,
                polls=result.polls,
            )
        return result

    def abort_copy(self, container_name: str, blob_name: str, copy_id: str) -> None:
        """Abort a pending copy, leaving a zero-length destination blob."""
        self.service_client.get_blob_client(container_name, blob_name).abort_copy(copy_id)
        logger.info("Copy aborted", copy_id=copy_id, container=container_name, blob=blob_name)
