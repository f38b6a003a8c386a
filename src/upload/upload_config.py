"""Server-provided upload policy with local defaults.

The backend publishes its size limit and accepted extensions at
``/system/upload-config``. The policy is fetched once per cache and the
defaults stay in effect when the call fails.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from src.platform_client.api_wrapper import APIWrapper
from src.platform_client.errors import PlatformError

from .mime_types import MIME_TYPES, file_extension
from .models import LocalFile

logger = logging.getLogger(__name__)

UPLOAD_CONFIG_PATH = '/system/upload-config'


@dataclass(frozen=True)
class UploadPolicy:
    """Upload limits published by the backend.

    Attributes:
        max_size: Maximum file size in bytes
        allowed_types: Accepted extensions without the dot, lower-case
    """
    max_size: int = 50 * 1024 * 1024
    allowed_types: List[str] = field(
        default_factory=lambda: ['pdf', 'docx', 'doc', 'pptx', 'ppt', 'zip', 'rar']
    )

    @classmethod
    def from_response(cls, data: Mapping[str, Any]) -> 'UploadPolicy':
        default = cls()
        max_size = int(data.get('max_size') or default.max_size)
        allowed = data.get('allowed_types') or default.allowed_types
        return cls(
            max_size=max_size,
            allowed_types=[str(ext).lower().lstrip('.') for ext in allowed],
        )

    @property
    def max_size_mb(self) -> int:
        return self.max_size // (1024 * 1024)

    @property
    def accept(self) -> str:
        """Extension list in the form file pickers expect (".pdf,.doc")."""
        return ','.join(f'.{ext}' for ext in self.allowed_types)

    @property
    def allowed_mime_types(self) -> List[str]:
        return [MIME_TYPES[f'.{ext}'] for ext in self.allowed_types if f'.{ext}' in MIME_TYPES]

    def accepts_type(self, file: LocalFile) -> bool:
        ext = file_extension(file.name).lstrip('.')
        return bool(ext) and ext in self.allowed_types

    def accepts_size(self, file: LocalFile) -> bool:
        return file.size <= self.max_size


class UploadConfigCache:
    """Loads the upload policy once and keeps it.

    Example:
        >>> cache = UploadConfigCache(api)
        >>> policy = await cache.load()
        >>> policy.max_size_mb
        50
    """

    def __init__(self, api: APIWrapper, default: Optional[UploadPolicy] = None):
        self._api = api
        self._policy = default or UploadPolicy()
        self._loaded = False

    @property
    def policy(self) -> UploadPolicy:
        return self._policy

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load(self) -> UploadPolicy:
        """Fetch the policy unless it was already loaded.

        A failed fetch keeps the current policy and is retried on the next
        load().
        """
        if self._loaded:
            return self._policy
        try:
            data = await self._api.aget(UPLOAD_CONFIG_PATH)
        except PlatformError as e:
            logger.warning(f"Could not load upload config, using defaults: {e}")
            return self._policy

        if isinstance(data, Mapping):
            self._policy = UploadPolicy.from_response(data)
            self._loaded = True
            logger.debug(
                f"Upload policy: max {self._policy.max_size} bytes, "
                f"types {self._policy.allowed_types}"
            )
        else:
            logger.warning("Upload config response was empty, using defaults")
        return self._policy

    async def refresh(self) -> UploadPolicy:
        self._loaded = False
        return await self.load()
