# src/sricache/core/read.py
"""
Integrity-verified read access to cache content.

Every operation resolves an integrity descriptor to a content file (see
resolver.py) and then:

- read / read_sync: load the whole file, check size then digest
- read_stream: hand back a ContentStream at once, verify while streaming
- copy / copy_sync: copy the file out without re-verifying it
- has_content / has_content_sync: lstat the file, report absence as None

Async variants run filesystem calls in worker threads so the event loop
never blocks on disk I/O.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from sricache.contracts.content import ContentInfo
from sricache.contracts.errors import ContentIntegrityError, ErrorCode, SizeMismatchError, error_code
from sricache.core.config import ReaderSettings, ReadOptions
from sricache.core.integrity import Hash, IntegrityLike, IntegrityVerifier, check_data
from sricache.core.resolver import with_content_sri, with_content_sri_sync
from sricache.core.stream import ContentStream

__all__ = [
    "copy",
    "copy_sync",
    "has_content",
    "has_content_sync",
    "read",
    "read_stream",
    "read_sync",
]

Options = ReadOptions | Mapping[str, Any] | None

_PERMISSION_CODES = frozenset({ErrorCode.EPERM, ErrorCode.EACCES})


def _verified(data: bytes, sri: Hash, path: Path, opts: ReadOptions) -> bytes:
    # Size first: it is free, hashing is not
    if opts.size is not None and opts.size != len(data):
        raise SizeMismatchError(opts.size, len(data))
    if check_data(data, sri) is None:
        raise ContentIntegrityError(sri, path)
    return data


async def read(
    cache: str | os.PathLike[str],
    integrity: IntegrityLike,
    opts: Options = None,
    *,
    settings: ReaderSettings | None = None,
) -> bytes:
    """Read content by descriptor with integrity verification.

    Args:
        cache: Store root
        integrity: Descriptor of the wanted content
        opts: Read options; only ``size`` is recognised
        settings: Reader settings (defaults if omitted)

    Returns:
        The verified content bytes

    Raises:
        SizeMismatchError: If opts.size differs from the stored length
        ContentIntegrityError: If the stored bytes don't match the digest
        FileNotFoundError: If the content is not in the cache
    """
    options = ReadOptions.coerce(opts)
    settings = settings or ReaderSettings()

    async def access(path: Path, sri: Hash) -> bytes:
        data = await asyncio.to_thread(path.read_bytes)
        return _verified(data, sri, path, options)

    return await with_content_sri(cache, integrity, access, max_concurrency=settings.max_concurrency)


def read_sync(
    cache: str | os.PathLike[str],
    integrity: IntegrityLike,
    opts: Options = None,
) -> bytes:
    """Blocking form of read()."""
    options = ReadOptions.coerce(opts)

    def access(path: Path, sri: Hash) -> bytes:
        return _verified(path.read_bytes(), sri, path, options)

    return with_content_sri_sync(cache, integrity, access)


def read_stream(
    cache: str | os.PathLike[str],
    integrity: IntegrityLike,
    opts: Options = None,
    *,
    settings: ReaderSettings | None = None,
) -> ContentStream:
    """Stream content by descriptor, verifying it as it is read.

    Must be called from a running event loop. The stream is returned
    before resolution starts; every failure after that point, including
    a malformed descriptor, is delivered through the stream.

    Content is passed on as it is read. Size and digest are checked at
    end of file, so a consumer sees the failure only after the last chunk.
    """
    settings = settings or ReaderSettings()
    stream = ContentStream(max_buffered_chunks=settings.stream_max_buffered_chunks)
    stream.start(_pump(stream, cache, integrity, opts, settings))
    return stream


async def _pump(
    stream: ContentStream,
    cache: str | os.PathLike[str],
    integrity: IntegrityLike,
    opts: Options,
    settings: ReaderSettings,
) -> None:
    try:
        options = ReadOptions.coerce(opts)

        async def locate(path: Path, sri: Hash) -> tuple[Path, Hash]:
            await asyncio.to_thread(os.lstat, path)
            return path, sri

        path, sri = await with_content_sri(cache, integrity, locate, max_concurrency=settings.max_concurrency)
        verifier = IntegrityVerifier(sri, size=options.size, path=path)

        handle = await asyncio.to_thread(open, path, "rb")
        try:
            while chunk := await asyncio.to_thread(handle.read, settings.stream_chunk_size):
                verifier.update(chunk)
                await stream.write(chunk)
        finally:
            handle.close()

        verifier.verify()
        await stream.finish()
    except Exception as e:
        stream.fail(e)


async def copy(
    cache: str | os.PathLike[str],
    integrity: IntegrityLike,
    dest: str | os.PathLike[str],
    opts: Options = None,
    *,
    settings: ReaderSettings | None = None,
) -> None:
    """Copy content out of the cache to dest.

    Uses shutil.copyfile, which delegates to the platform fast-copy call
    where there is one. The stored file is trusted as verified at write
    time and is not re-hashed.

    opts is accepted for signature parity with the other operations;
    no size check is made on copy.
    """
    settings = settings or ReaderSettings()

    async def access(path: Path, sri: Hash) -> None:
        await asyncio.to_thread(shutil.copyfile, path, dest)

    await with_content_sri(cache, integrity, access, max_concurrency=settings.max_concurrency)


def copy_sync(
    cache: str | os.PathLike[str],
    integrity: IntegrityLike,
    dest: str | os.PathLike[str],
    opts: Options = None,
) -> None:
    """Blocking form of copy()."""

    def access(path: Path, sri: Hash) -> None:
        shutil.copyfile(path, dest)

    with_content_sri_sync(cache, integrity, access)


def _absent_or_raise(error: Exception, platform: str) -> None:
    code = error_code(error)
    if code == ErrorCode.ENOENT:
        return
    # Windows reports missing and locked files alike as permission errors
    if code in _PERMISSION_CODES and platform.startswith("win"):
        return
    raise error


async def has_content(
    cache: str | os.PathLike[str],
    integrity: IntegrityLike | None,
    *,
    platform: str | None = None,
    settings: ReaderSettings | None = None,
) -> ContentInfo | None:
    """Check whether content for a descriptor is present.

    Args:
        cache: Store root
        integrity: Descriptor to look up; a falsy value means "not present"
        platform: Platform identifier for the permission policy
            (defaults to settings.platform)
        settings: Reader settings (defaults if omitted)

    Returns:
        ContentInfo for the resolved file, or None if it is absent

    Raises:
        PermissionError: On non-Windows platforms
        Exception: Any other failure, unchanged
    """
    if not integrity:
        return None
    settings = settings or ReaderSettings()
    platform = platform or settings.platform

    async def access(path: Path, sri: Hash) -> ContentInfo:
        stat = await asyncio.to_thread(os.lstat, path)
        return ContentInfo(size=stat.st_size, sri=sri, stat=stat)

    try:
        return await with_content_sri(cache, integrity, access, max_concurrency=settings.max_concurrency)
    except Exception as e:
        _absent_or_raise(e, platform)
        return None


def has_content_sync(
    cache: str | os.PathLike[str],
    integrity: IntegrityLike | None,
    *,
    platform: str | None = None,
    settings: ReaderSettings | None = None,
) -> ContentInfo | None:
    """Blocking form of has_content()."""
    if not integrity:
        return None
    platform = platform or (settings or ReaderSettings()).platform

    def access(path: Path, sri: Hash) -> ContentInfo:
        stat = os.lstat(path)
        return ContentInfo(size=stat.st_size, sri=sri, stat=stat)

    try:
        return with_content_sri_sync(cache, integrity, access)
    except Exception as e:
        _absent_or_raise(e, platform)
        return None
