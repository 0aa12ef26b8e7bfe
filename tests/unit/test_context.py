"""Tests for the caller-owned execution context."""

import asyncio

import pytest

from vcstream.context import StreamContext
from vcstream.exceptions import ContextCancelledError, DeadlineExceededError


@pytest.mark.unit
class TestStreamContext:
    async def test_fresh_context_is_live(self) -> None:
        context = StreamContext()

        assert context.done is False
        assert context.error is None
        assert context.remaining() is None
        context.raise_if_done()

    async def test_run_returns_result(self) -> None:
        async def answer() -> int:
            return 42

        assert await StreamContext().run(answer()) == 42

    async def test_run_propagates_inner_errors(self) -> None:
        async def boom() -> None:
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            await StreamContext().run(boom())

    async def test_cancel_keeps_first_reason(self) -> None:
        context = StreamContext()
        context.cancel("client went away")
        context.cancel("second reason")

        assert context.done
        assert isinstance(context.error, ContextCancelledError)
        assert context.error.message == "client went away"
        with pytest.raises(ContextCancelledError, match="client went away"):
            context.raise_if_done()

    async def test_run_on_cancelled_context_never_starts_work(self) -> None:
        started = False

        async def work() -> None:
            nonlocal started
            started = True

        context = StreamContext()
        context.cancel()

        with pytest.raises(ContextCancelledError):
            await context.run(work())
        assert started is False

    async def test_cancel_interrupts_pending_await(self) -> None:
        inner_cancelled = asyncio.Event()

        async def slow() -> None:
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                inner_cancelled.set()
                raise

        context = StreamContext()
        pending = asyncio.create_task(context.run(slow()))
        await asyncio.sleep(0.01)
        context.cancel()

        with pytest.raises(ContextCancelledError):
            await asyncio.wait_for(pending, timeout=5)
        assert inner_cancelled.is_set()

    async def test_deadline_interrupts_pending_await(self) -> None:
        context = StreamContext.with_timeout(0.02)

        with pytest.raises(DeadlineExceededError):
            await asyncio.wait_for(context.run(asyncio.sleep(30)), timeout=5)
        assert isinstance(context.error, DeadlineExceededError)

    async def test_expired_deadline_is_reported_without_waiting(self) -> None:
        loop = asyncio.get_running_loop()
        context = StreamContext(deadline=loop.time() - 1)

        assert context.done
        assert context.remaining() == 0.0
        with pytest.raises(DeadlineExceededError):
            context.raise_if_done()

    async def test_deadline_error_is_a_cancellation(self) -> None:
        assert issubclass(DeadlineExceededError, ContextCancelledError)

    async def test_caller_cancellation_waits_for_inner_task(self) -> None:
        inner_cancelled = asyncio.Event()

        async def work() -> None:
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                inner_cancelled.set()
                raise

        context = StreamContext()
        outer = asyncio.create_task(context.run(work()))
        await asyncio.sleep(0.01)
        outer.cancel()

        with pytest.raises(asyncio.CancelledError):
            await outer
        assert inner_cancelled.is_set()
        assert not context.done

    async def test_result_produced_after_caller_cancel_is_discarded(self) -> None:
        discarded: list[str] = []

        async def discard(value: str) -> None:
            discarded.append(value)

        async def finishes_anyway() -> str:
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                return "late"
            return "on time"

        context = StreamContext()
        outer = asyncio.create_task(context.run(finishes_anyway(), discard=discard))
        await asyncio.sleep(0.01)
        outer.cancel()

        with pytest.raises(asyncio.CancelledError):
            await outer
        assert discarded == ["late"]

    async def test_result_produced_after_context_cancel_is_discarded(self) -> None:
        discarded: list[str] = []

        async def discard(value: str) -> None:
            discarded.append(value)

        async def finishes_anyway() -> str:
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                return "late"
            return "on time"

        context = StreamContext()
        pending = asyncio.create_task(context.run(finishes_anyway(), discard=discard))
        await asyncio.sleep(0.01)
        context.cancel()

        with pytest.raises(ContextCancelledError):
            await asyncio.wait_for(pending, timeout=5)
        assert discarded == ["late"]
