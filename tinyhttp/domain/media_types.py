"""Static file extension to media type table."""

from types import MappingProxyType
from typing import Mapping

DEFAULT_MEDIA_TYPE = "application/octet-stream"

MEDIA_TYPES: Mapping[str, str] = MappingProxyType(
    {
        "html": "text/html",
        "htm": "text/html",
        "css": "text/css",
        "js": "application/javascript",
        "json": "application/json",
        "txt": "text/plain",
        "jpg": "image/jpeg",
        "jpeg": "image/jpeg",
        "png": "image/png",
        "gif": "image/gif",
        "pdf": "application/pdf",
        "ico": "image/x-icon",
        "svg": "image/svg+xml",
        "xml": "application/xml",
    }
)


def file_extension(filename: str) -> str:
    """Return the lower-cased extension, or "" for dotfiles and bare names."""
    dot = filename.rfind(".")
    if 0 < dot < len(filename) - 1:
        return filename[dot + 1 :].lower()
    return ""


def content_type_for(filename: str, media_types: Mapping[str, str] = MEDIA_TYPES) -> str:
    """Look up the media type for ``filename`` by extension."""
    return media_types.get(file_extension(filename), DEFAULT_MEDIA_TYPE)
