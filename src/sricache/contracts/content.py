"""Data contracts returned by content access operations."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sricache.core.integrity import Hash


@dataclass(frozen=True, slots=True)
class ContentInfo:
    """Result of a successful existence check.

    Attributes:
        size: Size of the stored file in bytes
        sri: The digest entry that resolved to the file
        stat: Raw lstat result for the content path
    """

    size: int
    sri: Hash
    stat: os.stat_result
