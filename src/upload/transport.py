"""Raw byte transfer to object storage.

The PUT goes straight to the signed write location, so it uses its own
session without the platform's bearer token.
"""

import logging
import threading
from typing import Optional

import requests

from .errors import TransferFailedError
from .models import LocalFile
from .progress import DEFAULT_CHUNK_SIZE, ProgressCallback, ProgressReader

logger = logging.getLogger(__name__)


class StorageTransport:
    """Blocking HTTP PUT of a local file with progress observation.

    Args:
        timeout: Seconds allowed for connecting and for each read of the response
        chunk_size: Block size used when the body is iterated
        session: Optional pre-built session (tests, connection reuse)
    """

    def __init__(
        self,
        timeout: float = 300,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        session: Optional[requests.Session] = None,
    ):
        self._timeout = timeout
        self._chunk_size = chunk_size
        self._session = session or requests.Session()

    def close(self) -> None:
        self._session.close()

    def put(
        self,
        url: str,
        file: LocalFile,
        mime_type: str,
        callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> int:
        """Stream ``file`` to ``url``.

        Args:
            url: Signed write location
            file: File to send
            mime_type: Value of the Content-Type header
            callback: Receives percentages 0-100 (called on this thread)
            cancel_event: Set by another thread to abort the transfer

        Returns:
            HTTP status code of the storage response

        Raises:
            TransferFailedError: On network errors or unreadable files
            TransferCancelledError: If cancel_event was set during the transfer
        """
        try:
            with open(file.path, 'rb') as fileobj:
                reader = ProgressReader(
                    fileobj,
                    file.size,
                    file.name,
                    callback=callback,
                    cancel_event=cancel_event,
                    chunk_size=self._chunk_size,
                )
                response = self._session.put(
                    url,
                    data=reader,
                    headers={'Content-Type': mime_type},
                    timeout=self._timeout,
                )
        # RequestException is an OSError subclass, so it has to be caught first
        except requests.RequestException as e:
            # requests messages embed the signed URL; keep only the exception type
            logger.error(f"Transfer of {file.name} failed: {type(e).__name__}")
            raise TransferFailedError(file.name, f"network error ({type(e).__name__})") from e
        except OSError as e:
            raise TransferFailedError(file.name, f"cannot read file: {e.strerror or e}") from e

        return response.status_code
