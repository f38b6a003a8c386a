"""Data models for platform API payloads."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .errors import APIAccessError


@dataclass
class PagedPayload:
    """Normalized body of a paginated list endpoint.

    Every list endpoint answers with ``{list, total, page, size}``, but a few
    older handlers still name the item list ``materials`` or ``results`` and
    the size ``page_size``. All store consumers go through this shape.

    Attributes:
        items: Entities of the returned page, in server order
        total: Server-side count of the whole collection
        page: 1-based page number the server actually returned
        size: Page size the server actually used
    """
    items: List[Any] = field(default_factory=list)
    total: int = 0
    page: int = 1
    size: int = 20

    ITEM_KEYS = ('list', 'materials', 'results')
    SIZE_KEYS = ('size', 'page_size')

    @classmethod
    def from_response(
        cls,
        data: Optional[Mapping[str, Any]],
        default_size: int = 20,
    ) -> 'PagedPayload':
        """Build a payload from the ``data`` field of an envelope.

        Args:
            data: Envelope data returned by APIWrapper
            default_size: Size to assume when the server omits it

        Returns:
            PagedPayload with normalized fields

        Raises:
            APIAccessError: If data is not a mapping
        """
        if data is None:
            return cls(items=[], total=0, page=1, size=default_size)
        if not isinstance(data, Mapping):
            raise APIAccessError(
                f"Expected paginated object, got {type(data).__name__}"
            )

        items: List[Any] = []
        for key in cls.ITEM_KEYS:
            if data.get(key) is not None:
                items = list(data[key])
                break

        size = default_size
        for key in cls.SIZE_KEYS:
            if data.get(key):
                size = int(data[key])
                break

        return cls(
            items=items,
            total=max(int(data.get('total') or 0), 0),
            page=max(int(data.get('page') or 1), 1),
            size=max(size, 1),
        )

    def as_dict(self) -> Dict[str, Any]:
        """Return the canonical ``{list, total, page, size}`` shape."""
        return {
            'list': list(self.items),
            'total': self.total,
            'page': self.page,
            'size': self.size,
        }
