"""Typed exception hierarchy for the upload pipeline.

Each failure domain of an upload has its own exception:

    UnsupportedTypeError     no MIME type resolvable, before any network call
    FileTooLargeError        over the configured size limit, before any network call
    AuthorizationDeniedError backend refused phase 1, before the transfer
    TransferFailedError      phase 2 failed or was cancelled, ticket discarded
"""

from typing import Optional, Union

from src.platform_client.errors import StudyShareError


class UploadError(StudyShareError):
    """Base exception for all upload failures."""

    def __init__(self, message: str, file_name: str):
        super().__init__(message)
        self.file_name = file_name


class UnsupportedTypeError(UploadError):
    """Raised when no allowed MIME type can be resolved for a file."""

    def __init__(self, file_name: str, extension: str):
        super().__init__(
            f"Unsupported file type: {extension or 'unknown'} ({file_name})",
            file_name,
        )
        self.extension = extension


class FileTooLargeError(UploadError):
    """Raised when a file exceeds the configured maximum upload size."""

    def __init__(self, file_name: str, size: int, max_size: int):
        super().__init__(
            f"File {file_name} is {size} bytes, limit is {max_size} bytes",
            file_name,
        )
        self.size = size
        self.max_size = max_size


class AuthorizationDeniedError(UploadError):
    """Raised when the backend refuses to issue an upload ticket."""

    def __init__(self, file_name: str, reason: str, code: Union[int, str, None] = None):
        super().__init__(f"Upload of {file_name} not authorized: {reason}", file_name)
        self.reason = reason
        self.code = code


class TransferFailedError(UploadError):
    """Raised when writing the bytes to storage fails."""

    def __init__(self, file_name: str, reason: str, status_code: Optional[int] = None):
        super().__init__(f"Upload of {file_name} failed: {reason}", file_name)
        self.reason = reason
        self.status_code = status_code


class TransferCancelledError(TransferFailedError):
    """Raised inside the transfer thread when the caller abandons the upload."""

    def __init__(self, file_name: str):
        super().__init__(file_name, "cancelled")
