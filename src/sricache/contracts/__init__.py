"""Shared contracts for cache content access.

This package is a LEAF MODULE with no outbound dependencies to core.
Types from core appear only under TYPE_CHECKING.
"""

from sricache.contracts.content import ContentInfo
from sricache.contracts.errors import (
    CacheError,
    ContentIntegrityError,
    ContentNotFoundError,
    ErrorCode,
    IntegrityParseError,
    SizeMismatchError,
    error_code,
)

__all__ = [
    "CacheError",
    "ContentInfo",
    "ContentIntegrityError",
    "ContentNotFoundError",
    "ErrorCode",
    "IntegrityParseError",
    "SizeMismatchError",
    "error_code",
]
