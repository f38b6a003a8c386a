"""Data models for the upload pipeline."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .errors import UploadError


@dataclass(frozen=True)
class LocalFile:
    """A local file queued for upload.

    Attributes:
        path: Location of the file on disk
        name: File name declared to the backend
        size: Size in bytes
        mime_type: Type supplied with the file; None means "derive from the extension"
    """
    path: Path
    name: str
    size: int
    mime_type: Optional[str] = None

    @classmethod
    def from_path(
        cls,
        path: Union[str, Path],
        mime_type: Optional[str] = None,
        name: Optional[str] = None,
    ) -> 'LocalFile':
        """Describe a file on disk.

        No type is guessed here; an unset type is resolved against the
        upload MIME table by the pipeline.

        Raises:
            FileNotFoundError: If the path does not exist
        """
        file_path = Path(path)
        size = os.path.getsize(file_path)
        return cls(path=file_path, name=name or file_path.name, size=size, mime_type=mime_type)

    def is_image(self) -> bool:
        return bool(self.mime_type) and self.mime_type.startswith('image/')  # type: ignore[union-attr]

    def is_pdf(self) -> bool:
        return self.mime_type == 'application/pdf'


@dataclass(frozen=True)
class UploadTicket:
    """Signed, single-use, time-bounded write location issued by the backend.

    Expiry is enforced by storage, not tracked here.

    Attributes:
        write_location: URL to PUT the file bytes to
        storage_key: Durable reference to hand back to the backend afterwards
    """
    write_location: str
    storage_key: str


@dataclass(frozen=True)
class UploadOutcome:
    """Result for one file of a batch upload.

    Attributes:
        index: Position of the file in the batch
        file_name: Name of the file
        storage_key: Storage key on success, None on failure
        error: The failure, None on success
    """
    index: int
    file_name: str
    storage_key: Optional[str] = None
    error: Optional[UploadError] = None

    @property
    def ok(self) -> bool:
        return self.storage_key is not None


def format_file_size(size: int) -> str:
    """Human-readable size with up to two decimals.

    Example:
        >>> format_file_size(1536)
        '1.5 KB'
    """
    if size <= 0:
        return '0 B'
    units = ['B', 'KB', 'MB', 'GB']
    value = float(size)
    exponent = 0
    while value >= 1024 and exponent < len(units) - 1:
        value /= 1024
        exponent += 1
    value = round(value, 2)
    if value == int(value):
        return f'{int(value)} {units[exponent]}'
    return f'{value} {units[exponent]}'
