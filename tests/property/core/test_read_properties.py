"""Property-based tests for verified content access.

These tests verify the foundational properties of cache reads:
- Content integrity: every access mode returns stored content exactly
- Tamper evidence: any modification of stored bytes is detected
- Order independence: one valid candidate among many is always found
"""

from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from sricache.contracts.errors import ContentIntegrityError, ContentNotFoundError, SizeMismatchError
from sricache.core.config import ReaderSettings
from sricache.core.content_path import content_path
from sricache.core.integrity import Integrity, from_data
from sricache.core.read import copy_sync, read, read_stream, read_sync

binary_content = st.binary(min_size=0, max_size=4096)
nonempty_binary = st.binary(min_size=1, max_size=4096)


def _store(cache: Path, data: bytes) -> Integrity:
    sri = from_data(data)
    path = content_path(cache, sri)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return sri


class TestAccessModeProperties:
    """All access modes agree on stored content."""

    @given(content=binary_content, chunk_size=st.integers(min_value=1, max_value=512))
    @settings(max_examples=100)
    def test_read_stream_and_copy_agree(self, content: bytes, chunk_size: int) -> None:
        """Property: read == drained read_stream == copied bytes == stored bytes."""
        with tempfile.TemporaryDirectory() as tmp_dir:
            cache = Path(tmp_dir) / "cache"
            sri = _store(cache, content)
            dest = Path(tmp_dir) / "copy.bin"

            async def stream_all() -> bytes:
                return await read_stream(cache, sri, settings=ReaderSettings(stream_chunk_size=chunk_size)).read()

            assert read_sync(cache, sri) == content
            assert asyncio.run(stream_all()) == content
            copy_sync(cache, sri, dest)
            assert dest.read_bytes() == content


class TestTamperProperties:
    """Any change to stored bytes is caught."""

    @given(content=nonempty_binary, data=st.data())
    @settings(max_examples=200)
    def test_bit_flip_detected(self, content: bytes, data: st.DataObject) -> None:
        """Property: flipping any bit of stored content raises EINTEGRITY."""
        index = data.draw(st.integers(min_value=0, max_value=len(content) - 1))
        bit = data.draw(st.integers(min_value=0, max_value=7))
        tampered = bytearray(content)
        tampered[index] ^= 1 << bit

        with tempfile.TemporaryDirectory() as tmp_dir:
            cache = Path(tmp_dir)
            sri = _store(cache, content)
            content_path(cache, sri).write_bytes(bytes(tampered))

            with pytest.raises(ContentIntegrityError):
                read_sync(cache, sri)

    @given(content=binary_content, declared=st.integers(min_value=0, max_value=8192))
    @settings(max_examples=100)
    def test_wrong_size_detected(self, content: bytes, declared: int) -> None:
        """Property: a declared size other than the stored length raises EBADSIZE."""
        assume(declared != len(content))

        with tempfile.TemporaryDirectory() as tmp_dir:
            cache = Path(tmp_dir)
            sri = _store(cache, content)

            with pytest.raises(SizeMismatchError) as exc_info:
                read_sync(cache, sri, {"size": declared})

            assert exc_info.value.expected == declared
            assert exc_info.value.found == len(content)


class TestCandidateOrderProperties:
    """Resolution among several candidate digests."""

    @given(
        contents=st.lists(nonempty_binary, min_size=2, max_size=6, unique=True),
        data=st.data(),
    )
    @settings(max_examples=50)
    def test_single_present_candidate_found_anywhere(self, contents: list[bytes], data: st.DataObject) -> None:
        """Property: if exactly one candidate is present, both strategies return it."""
        present_index = data.draw(st.integers(min_value=0, max_value=len(contents) - 1))
        sri = Integrity({"sha512": [from_data(content)["sha512"][0] for content in contents]})

        with tempfile.TemporaryDirectory() as tmp_dir:
            cache = Path(tmp_dir)
            _store(cache, contents[present_index])

            assert read_sync(cache, sri) == contents[present_index]
            assert asyncio.run(read(cache, sri)) == contents[present_index]

    @given(contents=st.lists(nonempty_binary, min_size=2, max_size=6, unique=True))
    @settings(max_examples=50)
    def test_no_present_candidate_is_one_enoent(self, contents: list[bytes]) -> None:
        """Property: with nothing present, async read raises a single aggregate ENOENT."""
        sri = Integrity({"sha512": [from_data(content)["sha512"][0] for content in contents]})

        with tempfile.TemporaryDirectory() as tmp_dir, pytest.raises(ContentNotFoundError):
            asyncio.run(read(Path(tmp_dir), sri))
