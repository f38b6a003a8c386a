"""Direct-to-storage upload pipeline.

A file never passes through the application backend. Uploading is a
two-phase operation treated as one logical unit:

    Phase 1 (authorize): send name, size and MIME type to the backend,
        receive a single-use UploadTicket (signed write location + key).
    Phase 2 (transfer): PUT the raw bytes to the write location while
        reporting progress; on a 2xx answer the ticket's storage key is
        the durable reference for the follow-up commit call.

Every failure notifies the user, discards the ticket and surfaces as
exactly one UploadError subclass. Neither phase is retried automatically.
"""

import asyncio
import logging
import threading
from typing import Callable, List, Optional, Sequence

from src.mutation.notifier import LoggingNotifier, Notifier
from src.platform_client.api_wrapper import APIWrapper
from src.platform_client.errors import PlatformError, RemoteOperationError

from .errors import (
    AuthorizationDeniedError,
    FileTooLargeError,
    TransferFailedError,
    UnsupportedTypeError,
    UploadError,
)
from .mime_types import file_extension, resolve_mime_type
from .models import LocalFile, UploadOutcome, UploadTicket
from .transport import StorageTransport
from .upload_config import UploadConfigCache

logger = logging.getLogger(__name__)

AUTHORIZE_PATH = '/materials/upload-authorize'

ProgressHandler = Callable[[int], None]
BatchProgressHandler = Callable[[int, int], None]


class UploadPipeline:
    """Authorize-then-transfer uploads with progress and typed failures.

    Files are uploaded one at a time. ``uploading`` and ``progress``
    describe the file currently in phase 2 and go back to False/0 when it
    settles.

    Args:
        api: Platform API wrapper used for phase 1
        transport: Storage transport used for phase 2
        notifier: Receives failure messages
        config: Optional upload policy cache; enables the client-side size check

    Example:
        >>> pipeline = UploadPipeline(api, StorageTransport())
        >>> key = await pipeline.upload_file(LocalFile.from_path("notes.rar"))
    """

    def __init__(
        self,
        api: APIWrapper,
        transport: Optional[StorageTransport] = None,
        notifier: Optional[Notifier] = None,
        config: Optional[UploadConfigCache] = None,
    ):
        self._api = api
        self._transport = transport or StorageTransport()
        self.notifier: Notifier = notifier or LoggingNotifier()
        self._config = config
        self._uploading = False
        self._progress = 0
        self._cancel_event: Optional[threading.Event] = None

    @property
    def uploading(self) -> bool:
        return self._uploading

    @property
    def progress(self) -> int:
        return self._progress

    # ------------------------------------------------------------------
    # Local checks
    # ------------------------------------------------------------------

    async def prepare(self, file: LocalFile) -> str:
        """Resolve the MIME type and apply the local size policy.

        No request is made apart from the one-time upload config fetch.

        Returns:
            The MIME type to declare

        Raises:
            UnsupportedTypeError: If no allowed type can be resolved
            FileTooLargeError: If the file exceeds the configured limit
        """
        mime_type = resolve_mime_type(file.name, file.mime_type)
        if not mime_type:
            raise UnsupportedTypeError(file.name, file_extension(file.name))

        if self._config is not None:
            policy = await self._config.load()
            if not policy.accepts_size(file):
                raise FileTooLargeError(file.name, file.size, policy.max_size)
        return mime_type

    # ------------------------------------------------------------------
    # Phase 1
    # ------------------------------------------------------------------

    async def authorize(self, file: LocalFile, mime_type: str) -> UploadTicket:
        """Ask the backend for a signed write location.

        Raises:
            AuthorizationDeniedError: If the backend refuses, is unreachable,
                or answers without a usable ticket
        """
        payload = {
            'file_name': file.name,
            'file_size': file.size,
            'mime_type': mime_type,
        }
        try:
            data = await self._api.apost(AUTHORIZE_PATH, json=payload)
        except RemoteOperationError as e:
            raise AuthorizationDeniedError(file.name, e.message, e.code) from e
        except PlatformError as e:
            raise AuthorizationDeniedError(file.name, str(e)) from e

        if not isinstance(data, dict) or not data.get('upload_url') or not data.get('file_key'):
            raise AuthorizationDeniedError(file.name, "backend returned no upload ticket")

        logger.debug(f"Upload ticket issued for {file.name}: {data['file_key']}")
        return UploadTicket(write_location=data['upload_url'], storage_key=data['file_key'])

    # ------------------------------------------------------------------
    # Phase 2
    # ------------------------------------------------------------------

    def _set_progress(self, percent: int, on_progress: Optional[ProgressHandler]) -> None:
        self._progress = percent
        if on_progress is not None:
            on_progress(percent)

    async def transfer(
        self,
        file: LocalFile,
        ticket: UploadTicket,
        mime_type: str,
        on_progress: Optional[ProgressHandler] = None,
    ) -> str:
        """PUT the file bytes to the ticket's write location.

        Progress callbacks run on the event loop thread. Cancelling the
        awaiting task stops the byte stream at the next block.

        Returns:
            The ticket's storage key

        Raises:
            TransferFailedError: On network errors or a non-2xx status
        """
        loop = asyncio.get_running_loop()
        cancel_event = threading.Event()
        self._cancel_event = cancel_event

        def _report(percent: int) -> None:
            # Called on the transfer thread
            if not cancel_event.is_set() and not loop.is_closed():
                loop.call_soon_threadsafe(self._set_progress, percent, on_progress)

        try:
            status = await asyncio.to_thread(
                self._transport.put,
                ticket.write_location,
                file,
                mime_type,
                _report,
                cancel_event,
            )
        except asyncio.CancelledError:
            cancel_event.set()
            logger.info(f"Transfer of {file.name} cancelled, ticket discarded")
            raise
        finally:
            self._cancel_event = None

        if not 200 <= status < 300:
            raise TransferFailedError(file.name, f"storage answered HTTP {status}", status)
        return ticket.storage_key

    def cancel_current(self) -> bool:
        """Abort the transfer in progress, if any.

        The awaiting upload_file() then fails with TransferFailedError.

        Returns:
            True if a transfer was running
        """
        if self._cancel_event is None:
            return False
        self._cancel_event.set()
        return True

    # ------------------------------------------------------------------
    # Whole uploads
    # ------------------------------------------------------------------

    async def upload_file(
        self,
        file: LocalFile,
        on_progress: Optional[ProgressHandler] = None,
    ) -> str:
        """Upload one file: local checks, phase 1, phase 2.

        Returns:
            The storage key to hand to the backend's commit call

        Raises:
            UploadError: Exactly one of UnsupportedTypeError,
                FileTooLargeError, AuthorizationDeniedError or TransferFailedError
        """
        try:
            mime_type = await self.prepare(file)
            ticket = await self.authorize(file, mime_type)

            self._uploading = True
            self._progress = 0
            try:
                storage_key = await self.transfer(file, ticket, mime_type, on_progress)
            finally:
                self._uploading = False
                self._progress = 0
        except UploadError as e:
            logger.warning(str(e))
            self.notifier.error(str(e))
            raise

        logger.info(f"Uploaded {file.name} as {storage_key}")
        return storage_key

    async def upload_files(
        self,
        files: Sequence[LocalFile],
        on_progress: Optional[BatchProgressHandler] = None,
    ) -> List[UploadOutcome]:
        """Upload files one after another.

        A failed file does not stop the queue. ``on_progress`` receives
        ``(index, percent)``.

        Returns:
            One UploadOutcome per input file, in input order
        """
        outcomes: List[UploadOutcome] = []
        for index, file in enumerate(files):
            handler: Optional[ProgressHandler] = None
            if on_progress is not None:
                def handler(percent: int, _index: int = index) -> None:
                    on_progress(_index, percent)
            try:
                storage_key = await self.upload_file(file, handler)
            except UploadError as e:
                outcomes.append(UploadOutcome(index=index, file_name=file.name, error=e))
            else:
                outcomes.append(
                    UploadOutcome(index=index, file_name=file.name, storage_key=storage_key)
                )

        failed = sum(1 for outcome in outcomes if not outcome.ok)
        logger.info(f"Batch upload finished: {len(outcomes) - failed} ok, {failed} failed")
        return outcomes
