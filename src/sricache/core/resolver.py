# src/sricache/core/resolver.py
"""Resolution of integrity descriptors to on-disk content.

A descriptor may list several equally valid digests for the strongest
algorithm it carries (deduplicated content, algorithm migrations). Each
digest is a candidate storage key. Resolution maps every candidate to its
content path and hands (path, hash) to an access function that does the
actual I/O.

Two strategies decide among several candidates:

- with_content_sri (async): all candidates run concurrently and the
  resolver waits for every one of them. The first success in listed
  order wins; otherwise a single aggregate ENOENT is raised if any
  candidate was missing; otherwise the first other failure.
- with_content_sri_sync (blocking): candidates run one at a time in
  listed order, stopping at the first success; if all fail, the last
  failure is raised.

The async form joins rather than races: a fast permission error on one
candidate must not hide a slower success on another.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

from sricache.contracts.errors import ContentNotFoundError, ErrorCode, error_code
from sricache.core.content_path import content_path
from sricache.core.integrity import Hash, Integrity, IntegrityLike, parse
from sricache.core.logging import get_logger

__all__ = ["with_content_sri", "with_content_sri_sync"]

T = TypeVar("T")

logger = get_logger(__name__)


async def _access_candidate(
    cache: str | os.PathLike[str],
    sri: Hash,
    fn: Callable[[Path, Hash], Awaitable[T]],
) -> T:
    return await fn(content_path(cache, sri), sri)


def _access_candidate_sync(
    cache: str | os.PathLike[str],
    sri: Hash,
    fn: Callable[[Path, Hash], T],
) -> T:
    return fn(content_path(cache, sri), sri)


async def with_content_sri(
    cache: str | os.PathLike[str],
    integrity: IntegrityLike,
    fn: Callable[[Path, Hash], Awaitable[T]],
    *,
    max_concurrency: int | None = None,
) -> T:
    """Resolve a descriptor and apply an async access function to its content.

    Args:
        cache: Store root
        integrity: Descriptor naming the wanted content
        fn: Coroutine function called with (content path, digest entry)
        max_concurrency: Cap on candidates accessed at once (None = unbounded)

    Returns:
        Whatever fn returned for the winning candidate

    Raises:
        IntegrityParseError: If the descriptor is malformed
        ContentNotFoundError: If several candidates were tried, none
            succeeded, and at least one was missing
        Exception: Any failure of fn, propagated unchanged
    """
    sri = parse(integrity)
    candidates = sri.candidates()
    if len(candidates) == 1:
        return await _access_candidate(cache, candidates[0], fn)
    return await _access_any(cache, sri, candidates, fn, max_concurrency)


async def _access_any(
    cache: str | os.PathLike[str],
    sri: Integrity,
    candidates: tuple[Hash, ...],
    fn: Callable[[Path, Hash], Awaitable[T]],
    max_concurrency: int | None,
) -> T:
    semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency is not None else None

    async def attempt(candidate: Hash) -> T:
        if semaphore is None:
            return await _access_candidate(cache, candidate, fn)
        async with semaphore:
            return await _access_candidate(cache, candidate, fn)

    outcomes = await asyncio.gather(*(attempt(candidate) for candidate in candidates), return_exceptions=True)

    # Cancellation and interpreter exits are not candidate failures
    for outcome in outcomes:
        if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
            raise outcome

    for outcome in outcomes:
        if not isinstance(outcome, BaseException):
            return outcome

    failures = [outcome for outcome in outcomes if isinstance(outcome, Exception)]
    for candidate, failure in zip(candidates, failures, strict=True):
        logger.debug(
            "content_candidate_failed",
            sri=str(candidate),
            code=error_code(failure),
            error=str(failure),
        )

    missing = next((failure for failure in failures if error_code(failure) == ErrorCode.ENOENT), None)
    if missing is not None:
        logger.debug("content_not_found", sri=str(sri), candidates=len(candidates))
        raise ContentNotFoundError(sri) from missing
    raise failures[0]


def with_content_sri_sync(
    cache: str | os.PathLike[str],
    integrity: IntegrityLike,
    fn: Callable[[Path, Hash], T],
) -> T:
    """Resolve a descriptor and apply a blocking access function to its content.

    Candidates are tried in listed order and the first success is returned.
    Unlike with_content_sri, a total failure raises the last candidate's
    error as-is, with no aggregate ENOENT.

    Raises:
        IntegrityParseError: If the descriptor is malformed
        Exception: Failure of fn for the last candidate tried
    """
    sri = parse(integrity)
    candidates = sri.candidates()
    if len(candidates) == 1:
        return _access_candidate_sync(cache, candidates[0], fn)

    failures: list[Exception] = []
    for candidate in candidates:
        try:
            return _access_candidate_sync(cache, candidate, fn)
        except Exception as e:
            logger.debug(
                "content_candidate_failed",
                sri=str(candidate),
                code=error_code(e),
                error=str(e),
            )
            failures.append(e)
    raise failures[-1]
