"""Data models for CLI operations."""

from dataclasses import dataclass
from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Operation completed successfully
    - GENERAL_ERROR (1): Config issues, rejected operations, failed uploads
    - AUTH_ERROR (3): Missing, invalid or expired credentials
    - NETWORK_ERROR (4): Backend unreachable
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    AUTH_ERROR = 3
    NETWORK_ERROR = 4


@dataclass
class ClientConfig:
    """Client settings kept in .studyshare/config.yaml.

    Credentials are not part of this file; they come from the environment.

    Attributes:
        page_size: Default page size for list commands
        request_timeout: Seconds allowed per backend API request
        transfer_timeout: Seconds allowed for a storage upload to answer
        chunk_size: Bytes per block when streaming an upload
        admin: Whether list commands use the administrator endpoints

    Example:
        >>> config = ClientConfig(page_size=50)
    """
    page_size: int = 20
    request_timeout: float = 30
    transfer_timeout: float = 300
    chunk_size: int = 64 * 1024
    admin: bool = False
