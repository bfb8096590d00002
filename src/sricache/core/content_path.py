# src/sricache/core/content_path.py
"""Mapping from digest entries to content file locations.

Content lives under a versioned directory, bucketed by algorithm and by
the first two byte-pairs of the hex digest for better file distribution:

    <cache>/content-v2/sha512/ab/cd/ef0123...
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from sricache.contracts.errors import IntegrityParseError
from sricache.core.integrity import Hash, IntegrityLike, parse

__all__ = ["CONTENT_VERSION", "content_dir", "content_path"]

CONTENT_VERSION = 2

_ALGORITHM_PATTERN = re.compile(r"^[a-z0-9_]+$")
_HEX_PATTERN = re.compile(r"^[a-f0-9]{5,}$")


def content_dir(cache: str | os.PathLike[str]) -> Path:
    """Root directory holding all content for a cache."""
    return Path(cache) / f"content-v{CONTENT_VERSION}"


def content_path(cache: str | os.PathLike[str], integrity: IntegrityLike) -> Path:
    """Get the filesystem path for a digest entry.

    Args:
        cache: Store root
        integrity: A single Hash, or a descriptor whose picked algorithm's
            first entry is used

    Returns:
        Path under content_dir(cache). No I/O is performed.

    Raises:
        IntegrityParseError: If the descriptor is malformed or the digest
            cannot be used as a storage key
    """
    sri = integrity if isinstance(integrity, Hash) else parse(integrity).candidates()[0]
    # Algorithm name becomes a path segment
    if not _ALGORITHM_PATTERN.match(sri.algorithm):
        raise IntegrityParseError(f"Invalid algorithm name: {sri.algorithm!r}")

    hex_digest = sri.hex_digest()
    if not _HEX_PATTERN.match(hex_digest):
        raise IntegrityParseError(f"Digest too short to use as a storage key: {sri}")

    return content_dir(cache) / sri.algorithm / hex_digest[:2] / hex_digest[2:4] / hex_digest[4:]
