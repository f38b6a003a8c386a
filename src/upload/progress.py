"""Progress-reporting file reader for streamed uploads.

requests streams a file-like body by calling ``read()`` repeatedly, so
wrapping the file is enough to observe how many bytes have gone out. The
frequency of reports is bounded by the transport's block size; nothing is
polled.
"""

import threading
from typing import BinaryIO, Callable, Iterator, Optional

from .errors import TransferCancelledError

ProgressCallback = Callable[[int], None]

DEFAULT_CHUNK_SIZE = 64 * 1024


class ProgressReader:
    """File wrapper that reports integer percentages as bytes are read.

    A percentage is reported only when it changes. 100 is reported once the
    last byte has been handed to the transport, including for empty files.
    Setting ``cancel_event`` makes the next read raise, which aborts the
    request in progress.

    Args:
        fileobj: Open binary file positioned at the start
        total: Number of bytes that will be sent
        file_name: Used in the cancellation error
        callback: Receives percentages 0-100
        cancel_event: Optional event checked before every read
        chunk_size: Block size when iterated

    Example:
        >>> with open(path, 'rb') as f:
        ...     reader = ProgressReader(f, size, 'notes.pdf', print)
        ...     requests.put(url, data=reader)
    """

    def __init__(
        self,
        fileobj: BinaryIO,
        total: int,
        file_name: str,
        callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self._fileobj = fileobj
        self._total = total
        self._file_name = file_name
        self._callback = callback
        self._cancel_event = cancel_event
        self._chunk_size = chunk_size
        self._sent = 0
        self._last_percent: Optional[int] = None

    def __len__(self) -> int:
        return self._total

    @property
    def bytes_sent(self) -> int:
        return self._sent

    def _report(self) -> None:
        if self._total <= 0:
            percent = 100
        else:
            percent = min(self._sent * 100 // self._total, 100)
        if percent != self._last_percent:
            self._last_percent = percent
            if self._callback is not None:
                self._callback(percent)

    def read(self, size: int = -1) -> bytes:
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise TransferCancelledError(self._file_name)
        if self._last_percent is None:
            self._report()
        chunk = self._fileobj.read(size)
        if chunk:
            self._sent += len(chunk)
            self._report()
        elif self._sent >= self._total:
            self._report()
        return chunk

    def __iter__(self) -> Iterator[bytes]:
        while True:
            chunk = self.read(self._chunk_size)
            if not chunk:
                return
            yield chunk
