"""Extension to MIME type table for uploads.

The table mirrors the backend's upload allow-list entry for entry. A type
that is missing here makes the client reject files the backend would take;
an extra entry lets through files the backend will refuse. Change both
sides together.
"""

import logging
import os
from typing import Dict, Optional

logger = logging.getLogger(__name__)

MIME_TYPES: Dict[str, str] = {
    '.pdf': 'application/pdf',
    '.doc': 'application/msword',
    '.docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    '.xls': 'application/vnd.ms-excel',
    '.xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    '.ppt': 'application/vnd.ms-powerpoint',
    '.pptx': 'application/vnd.openxmlformats-officedocument.presentationml.presentation',
    '.txt': 'text/plain',
    '.md': 'text/markdown',
    '.csv': 'text/csv',
    '.zip': 'application/zip',
    '.rar': 'application/x-rar-compressed',
    '.7z': 'application/x-7z-compressed',
    '.tar': 'application/x-tar',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.gif': 'image/gif',
    '.bmp': 'image/bmp',
    '.webp': 'image/webp',
}


def file_extension(file_name: str) -> str:
    """Lower-cased extension including the dot, or '' when there is none."""
    return os.path.splitext(file_name)[1].lower()


def mime_type_for_extension(extension: str) -> str:
    """Look up an extension (with or without the leading dot).

    Returns:
        The MIME type, or '' when the extension is not allowed
    """
    ext = extension.lower()
    if ext and not ext.startswith('.'):
        ext = f'.{ext}'
    mime_type = MIME_TYPES.get(ext, '')
    if not mime_type:
        logger.warning(f"Unsupported file type: {ext or '(no extension)'}")
    return mime_type


def resolve_mime_type(file_name: str, supplied_type: Optional[str] = None) -> str:
    """Return the MIME type to declare for an upload.

    A type supplied with the file wins; otherwise the extension is looked up
    in MIME_TYPES.

    Example:
        >>> resolve_mime_type("notes.rar")
        'application/x-rar-compressed'
        >>> resolve_mime_type("notes.xyz")
        ''
    """
    if supplied_type:
        return supplied_type
    return mime_type_for_extension(file_extension(file_name))
