"""Caller-owned execution context carrying cancellation and a deadline.

A ``StreamContext`` is created by whoever drives a stream operation. Every
await the streamer performs on the network (the tenant lookup, the upstream
send and each body read) goes through :meth:`StreamContext.run`, so cancelling
the context or letting its deadline pass aborts that await and surfaces as a
``ContextCancelledError`` / ``DeadlineExceededError``.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from vcstream.exceptions import ContextCancelledError, DeadlineExceededError


T = TypeVar("T")


class StreamContext:
    """Cancellation signal plus an optional absolute deadline (loop time)."""

    def __init__(self, deadline: float | None = None) -> None:
        self._deadline = deadline
        self._done = asyncio.Event()
        self._error: ContextCancelledError | None = None

    @classmethod
    def with_timeout(cls, seconds: float) -> "StreamContext":
        """Create a context whose deadline is ``seconds`` from now."""
        loop = asyncio.get_running_loop()
        return cls(deadline=loop.time() + seconds)

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def error(self) -> ContextCancelledError | None:
        """The reason the context ended, or None while it is still live."""
        if self._error is None and self._expired():
            self._finish(DeadlineExceededError("context deadline exceeded"))
        return self._error

    @property
    def done(self) -> bool:
        return self.error is not None

    def cancel(self, reason: str = "context canceled") -> None:
        """Cancel the context. Later calls keep the first reason."""
        self._finish(ContextCancelledError(reason))

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None when there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - asyncio.get_running_loop().time())

    def raise_if_done(self) -> None:
        if self.done:
            raise self._copy_error()

    async def run(
        self,
        awaitable: Awaitable[T],
        discard: Callable[[T], Awaitable[None]] | None = None,
    ) -> T:
        """Await ``awaitable`` unless the context ends first.

        When the context is cancelled or its deadline passes while waiting, the
        inner task is cancelled and awaited before the context error is raised.
        The same happens when the calling task itself is cancelled. ``discard``
        receives a result that was produced but will never be returned, so that
        resources such as open responses can be released.
        """
        task = asyncio.ensure_future(awaitable)
        if self.done:
            await _cancel_and_wait(task, discard)
            raise self._copy_error()

        waiter = asyncio.ensure_future(self._done.wait())
        try:
            await asyncio.wait(
                {task, waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            await _cancel_and_wait(task, discard)
            raise
        finally:
            waiter.cancel()

        if task.done():
            return task.result()

        if not self._done.is_set():
            # Woken by the wait timeout, so the deadline has been reached.
            self._finish(DeadlineExceededError("context deadline exceeded"))

        await _cancel_and_wait(task, discard)
        raise self._copy_error()

    def _copy_error(self) -> ContextCancelledError:
        error = self.error
        assert error is not None
        return type(error)(error.message)

    def _expired(self) -> bool:
        if self._deadline is None:
            return False
        return asyncio.get_running_loop().time() >= self._deadline

    def _finish(self, error: ContextCancelledError) -> None:
        if self._error is None:
            self._error = error
        self._done.set()


async def _cancel_and_wait(
    task: "asyncio.Future[T]",
    discard: Callable[[T], Awaitable[None]] | None = None,
) -> None:
    """Cancel ``task`` and wait for it to unwind.

    A result the task managed to produce anyway is handed to ``discard``.
    """
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    if discard is not None and not task.cancelled() and task.exception() is None:
        await discard(task.result())
