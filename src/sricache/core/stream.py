# src/sricache/core/stream.py
"""Readable handle for content that is still being resolved.

read_stream() must give the caller something to consume before it knows
which file (if any) backs the content. ContentStream is that handle: it
is returned immediately and filled later by a producer task. Failures
arrive through the handle, never as an exception from read_stream():

    stream = read_stream(cache, sri)
    stream.add_error_listener(report)
    async for chunk in stream:   # raises the producer's failure, if any
        sink.write(chunk)
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any, Final

from sricache.core.logging import get_logger

__all__ = ["ContentStream"]

logger = get_logger(__name__)

_EOF: Final = object()


class ContentStream:
    """Async byte-chunk stream fed by a background producer.

    The buffer is bounded: a producer that gets ahead of its consumer by
    max_buffered_chunks waits until the consumer catches up.

    A failure is delivered as soon as it happens. Chunks still buffered
    at that point are discarded.
    """

    def __init__(self, *, max_buffered_chunks: int = 16) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=max_buffered_chunks)
        self._error: BaseException | None = None
        self._error_listeners: list[Callable[[BaseException], None]] = []
        self._task: asyncio.Task[None] | None = None
        self._finished = False
        self._exhausted = False
        self._closed = False

    def start(self, producer: Coroutine[Any, Any, None]) -> None:
        """Schedule the producer on the running loop.

        The producer does not run until the caller next yields to the loop.
        """
        self._task = asyncio.get_running_loop().create_task(producer)

    # -- producer side -------------------------------------------------

    async def write(self, chunk: bytes) -> None:
        if chunk:
            await self._queue.put(chunk)

    async def finish(self) -> None:
        self._finished = True
        await self._queue.put(_EOF)

    def fail(self, error: BaseException) -> None:
        """Deliver a producer failure to the consumer and error listeners."""
        if self._error is not None or self._closed:
            return
        self._error = error
        self._finished = True
        # Wake a consumer blocked on an empty queue
        if not self._queue.full():
            self._queue.put_nowait(_EOF)

        if not self._error_listeners:
            logger.warning("content_stream_failed", error=str(error), error_type=type(error).__name__)
        for listener in self._error_listeners:
            self._notify(listener, error)

    @staticmethod
    def _notify(listener: Callable[[BaseException], None], error: BaseException) -> None:
        # A listener that raises must not take down the producer task
        try:
            listener(error)
        except Exception:
            logger.exception("content_stream_listener_failed", listener=repr(listener))

    # -- consumer side -------------------------------------------------

    def add_error_listener(self, listener: Callable[[BaseException], None]) -> None:
        """Register a callback for producer failures.

        A listener added after the failure is called immediately.
        """
        self._error_listeners.append(listener)
        if self._error is not None:
            self._notify(listener, self._error)

    def exception(self) -> BaseException | None:
        """The producer failure, or None if there was none (yet)."""
        return self._error

    @property
    def finished(self) -> bool:
        """Whether the producer has completed or failed."""
        return self._finished

    def __aiter__(self) -> ContentStream:
        return self

    async def __anext__(self) -> bytes:
        if self._error is not None:
            raise self._error
        if self._exhausted or self._closed:
            raise StopAsyncIteration

        item = await self._queue.get()
        if self._error is not None:
            raise self._error
        if item is _EOF:
            self._exhausted = True
            raise StopAsyncIteration
        assert isinstance(item, bytes)
        return item

    async def read(self) -> bytes:
        """Drain the stream and return all remaining bytes."""
        return b"".join([chunk async for chunk in self])

    def close(self) -> None:
        """Stop consuming and cancel the producer.

        The producer's file handle is released when its task unwinds;
        release is not awaited here.
        """
        self._closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
