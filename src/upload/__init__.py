"""Direct-to-storage uploads: MIME resolution, authorization, streamed transfer."""

from .errors import (
    UploadError,
    UnsupportedTypeError,
    FileTooLargeError,
    AuthorizationDeniedError,
    TransferFailedError,
    TransferCancelledError,
)
from .mime_types import MIME_TYPES, resolve_mime_type
from .models import LocalFile, UploadOutcome, UploadTicket, format_file_size
from .pipeline import UploadPipeline
from .transport import StorageTransport
from .upload_config import UploadConfigCache, UploadPolicy

__all__ = [
    "MIME_TYPES",
    "AuthorizationDeniedError",
    "FileTooLargeError",
    "LocalFile",
    "StorageTransport",
    "TransferCancelledError",
    "TransferFailedError",
    "UnsupportedTypeError",
    "UploadConfigCache",
    "UploadError",
    "UploadOutcome",
    "UploadPipeline",
    "UploadPolicy",
    "UploadTicket",
    "format_file_size",
    "resolve_mime_type",
]
