"""Readable, closable handle over a live upstream response body."""

from collections.abc import AsyncIterator
from types import TracebackType

import httpx

from vcstream.context import StreamContext
from vcstream.core.logging import get_logger
from vcstream.exceptions import ContextCancelledError, TransportError


logger = get_logger(__name__)


class LocationStream:
    """Lazily reads the body of an upstream response.

    Nothing is read until the caller asks for it. Every read is bounded by the
    execution context the stream was opened with: once that context is
    cancelled or past its deadline, the next read raises and the underlying
    connection is released. The caller owns the handle and must close it.
    """

    def __init__(
        self,
        response: httpx.Response,
        context: StreamContext,
        chunk_size: int | None = None,
    ):
        self._response = response
        self._context = context
        self._chunks = response.aiter_bytes(chunk_size)
        self._buffer = bytearray()
        self._eof = False
        self._closed = False

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    @property
    def url(self) -> httpx.URL:
        return self._response.url

    @property
    def closed(self) -> bool:
        return self._closed

    async def read(self, n: int = -1) -> bytes:
        """Read up to ``n`` bytes, or everything left when ``n`` is negative.

        Returns an empty bytes object at end of stream.
        """
        while (n < 0 or len(self._buffer) < n) and not self._eof:
            chunk = await self._next_chunk()
            if chunk is None:
                break
            self._buffer.extend(chunk)

        if n < 0:
            n = len(self._buffer)
        data = bytes(self._buffer[:n])
        del self._buffer[:n]
        return data

    async def __aiter__(self) -> AsyncIterator[bytes]:
        if self._buffer:
            data = bytes(self._buffer)
            self._buffer.clear()
            yield data
        while True:
            chunk = await self._next_chunk()
            if chunk is None:
                return
            if chunk:
                yield chunk

    async def aclose(self) -> None:
        """Release the upstream connection. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self._response.aclose()
        logger.debug("location_stream_closed", url=str(self._response.url))

    async def __aenter__(self) -> "LocationStream":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def _next_chunk(self) -> bytes | None:
        if self._closed:
            raise TransportError("read from closed stream")
        if self._eof:
            return None

        try:
            chunk = await self._context.run(self._pull())
        except ContextCancelledError as e:
            logger.info(
                "location_stream_cancelled",
                url=str(self._response.url),
                reason=e.message,
            )
            await self.aclose()
            raise
        except httpx.HTTPError as e:
            logger.warning(
                "location_stream_read_failed",
                url=str(self._response.url),
                error=str(e),
                error_type=type(e).__name__,
            )
            await self.aclose()
            raise TransportError(f"error reading {self._response.url}: {e}") from e

        if chunk is None:
            self._eof = True
        return chunk

    async def _pull(self) -> bytes | None:
        try:
            return await self._chunks.__anext__()
        except StopAsyncIteration:
            return None
