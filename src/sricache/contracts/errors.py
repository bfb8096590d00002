# src/sricache/contracts/errors.py
"""Error contracts for cache content access.

Every failure that the read operations classify carries a ``code``
discriminator so callers can branch on the condition without matching
exception types or message text:

- EBADSIZE: stored byte length disagrees with the caller's expected size
- EINTEGRITY: stored bytes do not hash to the requested digest
- ENOENT: no candidate digest resolved to a present file
- EPERM / EACCES: permission denied (raised by the OS, classified here)

Anything else (malformed descriptors, arbitrary I/O faults) is
unclassified and propagates unchanged.
"""

from __future__ import annotations

import errno
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from os import PathLike

    from sricache.core.integrity import Hash, Integrity


class ErrorCode(StrEnum):
    """Discriminator values carried by classified failures."""

    ENOENT = "ENOENT"
    EPERM = "EPERM"
    EACCES = "EACCES"
    EBADSIZE = "EBADSIZE"
    EINTEGRITY = "EINTEGRITY"


class CacheError(Exception):
    """Base class for classified cache content failures."""

    code: ClassVar[ErrorCode]


class SizeMismatchError(CacheError):
    """Raised when content length differs from the caller's expected size.

    Attributes:
        expected: Byte length the caller declared
        found: Byte length actually read from the store
    """

    code = ErrorCode.EBADSIZE

    def __init__(self, expected: int, found: int) -> None:
        super().__init__(f"Bad data size: expected inserted data to be {expected} bytes, but got {found} instead")
        self.expected = expected
        self.found = found


class ContentIntegrityError(CacheError):
    """Raised when stored content doesn't match the digest it is filed under.

    This indicates filesystem corruption, tampering, or a writer bug.
    Corrupted data is never returned to the caller.

    Attributes:
        sri: The digest the content was verified against
        path: Location of the offending file
    """

    code = ErrorCode.EINTEGRITY

    def __init__(self, sri: Hash | Integrity, path: str | PathLike[str]) -> None:
        super().__init__(f"Integrity verification failed for {sri} ({path})")
        self.sri = sri
        self.path = path


class ContentNotFoundError(CacheError, FileNotFoundError):
    """Raised when none of a descriptor's candidate digests is present.

    Subclasses FileNotFoundError so ``except FileNotFoundError`` handlers
    written against single-digest lookups keep working.
    """

    code = ErrorCode.ENOENT

    def __init__(self, sri: Integrity) -> None:
        super().__init__(f"No matching content found for {sri}")
        self.sri = sri


class IntegrityParseError(ValueError):
    """Raised when an integrity descriptor contains no usable digest."""


def error_code(exc: BaseException) -> str | None:
    """Classify an exception into its ``code`` discriminator.

    Args:
        exc: Any exception raised while accessing cache content

    Returns:
        The code of a CacheError, the symbolic errno name of an OSError
        (e.g. "ENOENT"), or None for unclassified failures.
    """
    if isinstance(exc, CacheError):
        return exc.code
    if isinstance(exc, OSError) and exc.errno is not None:
        return errno.errorcode.get(exc.errno)
    return None
