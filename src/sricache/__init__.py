"""
sricache: integrity-verified read access to content-addressable caches.

Content is addressed by Subresource-Integrity style descriptors and is
verified against them on every read.
"""

from sricache.contracts import (
    CacheError,
    ContentInfo,
    ContentIntegrityError,
    ContentNotFoundError,
    ErrorCode,
    IntegrityParseError,
    SizeMismatchError,
    error_code,
)
from sricache.core.config import ReaderSettings, ReadOptions
from sricache.core.content_path import content_path
from sricache.core.integrity import Hash, Integrity, parse
from sricache.core.read import (
    copy,
    copy_sync,
    has_content,
    has_content_sync,
    read,
    read_stream,
    read_sync,
)
from sricache.core.stream import ContentStream

__version__ = "0.1.0"

__all__ = [
    "CacheError",
    "ContentInfo",
    "ContentIntegrityError",
    "ContentNotFoundError",
    "ContentStream",
    "ErrorCode",
    "Hash",
    "Integrity",
    "IntegrityParseError",
    "ReadOptions",
    "ReaderSettings",
    "SizeMismatchError",
    "content_path",
    "copy",
    "copy_sync",
    "error_code",
    "has_content",
    "has_content_sync",
    "parse",
    "read",
    "read_stream",
    "read_sync",
]
