# src/sricache/core/integrity.py
"""Subresource-Integrity style digest descriptors.

A descriptor is a whitespace-separated list of ``<algorithm>-<base64>``
tokens, each optionally followed by ``?``-separated metadata::

    sha512-3Cy...== sha1-Kq5sNclPz7QV2+lfQIuc6R7oRu0=?deprecated

Any listed digest is acceptable proof of identity. Verification always
uses the strongest algorithm present, so a weak digest listed alongside a
strong one never decides the outcome.

Hashing uses hashlib; digest comparison uses hmac.compare_digest.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from os import PathLike
from types import MappingProxyType

from sricache.contracts.errors import ContentIntegrityError, IntegrityParseError, SizeMismatchError

__all__ = [
    "DEFAULT_ALGORITHMS",
    "Hash",
    "Integrity",
    "IntegrityLike",
    "IntegrityVerifier",
    "check_data",
    "from_data",
    "parse",
]

DEFAULT_ALGORITHMS: tuple[str, ...] = ("sha512",)

# Weakest first. Algorithms missing from this list rank below all of them.
_PRIORITY: tuple[str, ...] = (
    "md5",
    "whirlpool",
    "sha1",
    "sha224",
    "sha256",
    "sha384",
    "sha512",
    "sha3_224",
    "sha3_256",
    "sha3_384",
    "sha3_512",
)

_ALGORITHM_PATTERN = re.compile(r"^[a-z0-9_]+$")
_TOKEN_PATTERN = re.compile(r"^([a-z0-9_]+)-([A-Za-z0-9+/]+={0,2})((?:\?[\x21-\x7E]*)?)$")


def _rank(algorithm: str) -> int:
    try:
        return _PRIORITY.index(algorithm)
    except ValueError:
        return -1


def _b64digest(data: bytes, algorithm: str) -> str:
    return base64.b64encode(hashlib.new(algorithm, data).digest()).decode("ascii")


@dataclass(frozen=True, slots=True)
class Hash:
    """One digest entry of an integrity descriptor.

    Attributes:
        algorithm: hashlib algorithm name (e.g. "sha512")
        digest: Base64-encoded digest
        options: Metadata strings that followed the digest, without "?"
    """

    algorithm: str
    digest: str
    options: tuple[str, ...] = ()

    def hex_digest(self) -> str:
        """Return the digest as lowercase hex.

        Raises:
            IntegrityParseError: If the digest is not valid base64
        """
        try:
            raw = base64.b64decode(self.digest, validate=True)
        except (binascii.Error, ValueError) as e:
            raise IntegrityParseError(f"Invalid base64 digest in {self}") from e
        return raw.hex()

    def __str__(self) -> str:
        return f"{self.algorithm}-{self.digest}" + "".join(f"?{opt}" for opt in self.options)


class Integrity:
    """Immutable, ordered mapping of algorithm name to digest entries.

    Preserves the order algorithms and entries were listed in; that order
    is the caller's preference among equivalent digests.
    """

    __slots__ = ("_hashes",)

    def __init__(self, hashes: Mapping[str, Iterable[Hash]]) -> None:
        frozen = {algorithm: tuple(entries) for algorithm, entries in hashes.items()}
        frozen = {algorithm: entries for algorithm, entries in frozen.items() if entries}
        if not frozen:
            raise IntegrityParseError("Integrity descriptor must contain at least one digest")
        self._hashes = MappingProxyType(frozen)

    @classmethod
    def from_hash(cls, sri: Hash) -> Integrity:
        return cls({sri.algorithm: (sri,)})

    @property
    def algorithms(self) -> tuple[str, ...]:
        return tuple(self._hashes)

    def __getitem__(self, algorithm: str) -> tuple[Hash, ...]:
        return self._hashes[algorithm]

    def __contains__(self, algorithm: object) -> bool:
        return algorithm in self._hashes

    def __iter__(self) -> Iterator[Hash]:
        for entries in self._hashes.values():
            yield from entries

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Integrity):
            return NotImplemented
        return dict(self._hashes) == dict(other._hashes)

    def __hash__(self) -> int:
        return hash(tuple(self))

    def __str__(self) -> str:
        return " ".join(str(sri) for sri in self)

    def __repr__(self) -> str:
        return f"Integrity({str(self)!r})"

    def pick_algorithm(self) -> str:
        """Return the strongest algorithm in the descriptor.

        Ties and unranked algorithms resolve to whichever was listed first.
        """
        best = self.algorithms[0]
        for algorithm in self.algorithms[1:]:
            if _rank(algorithm) > _rank(best):
                best = algorithm
        return best

    def candidates(self) -> tuple[Hash, ...]:
        """Digest entries of the picked algorithm, in listed order."""
        return self._hashes[self.pick_algorithm()]


IntegrityLike = str | Hash | Integrity


def _parse_token(token: str) -> Hash | None:
    match = _TOKEN_PATTERN.match(token)
    if match is None:
        return None
    algorithm, digest, raw_options = match.groups()
    if algorithm not in hashlib.algorithms_available:
        return None
    options = tuple(raw_options[1:].split("?")) if raw_options else ()
    return Hash(algorithm=algorithm, digest=digest, options=options)


def parse(value: IntegrityLike) -> Integrity:
    """Parse an integrity descriptor.

    Tokens that are malformed or name an algorithm hashlib cannot compute
    are skipped.

    Args:
        value: Descriptor string, single Hash, or an already-parsed Integrity

    Returns:
        Parsed Integrity

    Raises:
        IntegrityParseError: If no usable digest remains
    """
    if isinstance(value, Integrity):
        return value
    if isinstance(value, Hash):
        if not _ALGORITHM_PATTERN.match(value.algorithm):
            raise IntegrityParseError(f"Invalid algorithm name: {value.algorithm!r}")
        return Integrity.from_hash(value)
    if not isinstance(value, str):
        raise IntegrityParseError(f"Unsupported integrity descriptor type: {type(value).__name__}")

    hashes: dict[str, list[Hash]] = {}
    for token in value.split():
        sri = _parse_token(token)
        if sri is not None:
            hashes.setdefault(sri.algorithm, []).append(sri)
    if not hashes:
        raise IntegrityParseError(f"No valid digests found in integrity descriptor: {value[:100]!r}")
    return Integrity(hashes)


def from_data(data: bytes, algorithms: Iterable[str] = DEFAULT_ALGORITHMS) -> Integrity:
    """Compute a descriptor for data under each of the given algorithms."""
    return Integrity({algorithm: (Hash(algorithm, _b64digest(data, algorithm)),) for algorithm in algorithms})


def check_data(data: bytes, sri: IntegrityLike) -> Hash | None:
    """Check data against a descriptor.

    Only the picked (strongest) algorithm is consulted.

    Returns:
        The first matching digest entry, or None if nothing matches
    """
    integrity = parse(sri)
    algorithm = integrity.pick_algorithm()
    actual = _b64digest(data, algorithm)
    for candidate in integrity[algorithm]:
        # Timing-safe comparison
        if hmac.compare_digest(candidate.digest, actual):
            return candidate
    return None


class IntegrityVerifier:
    """Incremental verifier for streamed content.

    Feed chunks with update(), then call verify() once the stream ends.
    Size is checked before the digest.

    Example:
        verifier = IntegrityVerifier(sri, size=expected)
        for chunk in chunks:
            verifier.update(chunk)
        verifier.verify()
    """

    def __init__(
        self,
        sri: IntegrityLike,
        *,
        size: int | None = None,
        path: str | PathLike[str] | None = None,
    ) -> None:
        self.sri = parse(sri)
        self.algorithm = self.sri.pick_algorithm()
        self.expected_size = size
        self.path = path
        self.size = 0
        self.match: Hash | None = None
        self._hasher = hashlib.new(self.algorithm)

    def update(self, chunk: bytes) -> None:
        self._hasher.update(chunk)
        self.size += len(chunk)

    def verify(self) -> Hash:
        """Finish verification.

        Returns:
            The digest entry the content matched

        Raises:
            SizeMismatchError: If the byte count differs from the expected size
            ContentIntegrityError: If no digest entry matches the content
        """
        if self.expected_size is not None and self.size != self.expected_size:
            raise SizeMismatchError(self.expected_size, self.size)

        actual = base64.b64encode(self._hasher.digest()).decode("ascii")
        for candidate in self.sri[self.algorithm]:
            if hmac.compare_digest(candidate.digest, actual):
                self.match = candidate
                return candidate
        raise ContentIntegrityError(self.sri, self.path if self.path is not None else "<stream>")
