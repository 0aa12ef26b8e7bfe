"""Streams the contents of an upstream location URL.

``LocationStreamer`` issues exactly one GET per call (plus any redirect hops its
policy allows), stamps the request with the tenant header, validates the
response and hands the still-unread body back to the caller together with the
negotiated content type and flush hint. It never retries and never buffers.
"""

import inspect
from collections.abc import Sequence
from dataclasses import dataclass

import httpx

from vcstream.context import StreamContext
from vcstream.core.http_client import get_default_transport
from vcstream.core.interfaces import ConfigLookup, RedirectPolicy, ResponseValidator
from vcstream.core.logging import get_logger
from vcstream.exceptions import (
    ContextCancelledError,
    RedirectRejectedError,
    RequestConstructionError,
    StreamError,
    TransportError,
    ValidationRejectedError,
)
from vcstream.policies import prevent_redirects
from vcstream.stream import LocationStream
from vcstream.tenant import VIRTUAL_CLUSTER_NAME_HEADER, TenantResolver


logger = get_logger(__name__)


@dataclass(frozen=True)
class StreamRequestSpec:
    """Everything one streaming attempt needs. Built once, never mutated."""

    location: str | httpx.URL | None = None
    # Falls back to the streamer's default transport
    transport: httpx.AsyncBaseTransport | None = None
    # Overrides the upstream Content-Type when non-empty
    content_type: str = ""
    flush: bool = False
    response_validator: ResponseValidator | None = None
    # Falls back to prevent_redirects
    redirect_policy: RedirectPolicy | None = None
    config_lookup: ConfigLookup | None = None


@dataclass
class StreamResult:
    """Outcome of a streaming attempt.

    When ``stream`` is set the caller owns it and must close it.
    """

    stream: LocationStream | None = None
    flush: bool = False
    content_type: str = ""
    error: StreamError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> LocationStream | None:
        """Return the stream handle, raising the captured error if there is one."""
        if self.error is not None:
            raise self.error
        return self.stream


def negotiate_content_type(explicit: str, headers: httpx.Headers) -> str:
    """Pick the content type reported to the caller.

    An explicit value wins verbatim. Otherwise the media type of the upstream
    Content-Type header is used without its parameters.
    """
    if explicit:
        return explicit
    # Only the first header counts when the upstream repeats it
    values = headers.get_list("content-type")
    if not values:
        return ""
    return values[0].split(";", 1)[0].strip()


class LocationStreamer:
    """Turns a ``StreamRequestSpec`` into an open upstream byte stream."""

    def __init__(
        self,
        spec: StreamRequestSpec,
        default_transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.spec = spec
        self._default_transport = default_transport

    async def stream(self, context: StreamContext | None = None) -> StreamResult:
        """Open the upstream body for reading.

        Args:
            context: Caller's execution context; its cancellation and deadline
                bound the tenant lookup, the send and every later body read

        Returns:
            A StreamResult carrying either an open stream or the error that
            prevented one. A spec without a location yields an empty result.
        """
        if self.spec.location is None:
            return StreamResult()

        if context is None:
            context = StreamContext()

        try:
            return await self._open(context)
        except StreamError as e:
            logger.warning(
                "location_stream_failed",
                location=str(self.spec.location),
                error=e.message,
                error_type=type(e).__name__,
                category="stream",
            )
            return StreamResult(error=e)

    def _transport(self) -> httpx.AsyncBaseTransport:
        if self.spec.transport is not None:
            return self.spec.transport
        if self._default_transport is not None:
            return self._default_transport
        return get_default_transport()

    async def _open(self, context: StreamContext) -> StreamResult:
        spec = self.spec

        # The client only borrows the transport, so it is never closed here.
        client = httpx.AsyncClient(
            transport=self._transport(),
            follow_redirects=False,
            timeout=None,
            trust_env=False,
        )
        request = _build_request(client, spec.location)

        tenant = await TenantResolver(spec.config_lookup).resolve(context)
        request.headers[VIRTUAL_CLUSTER_NAME_HEADER] = tenant

        logger.debug(
            "location_stream_started",
            location=str(request.url),
            tenant=tenant,
            category="stream",
        )

        response = await _send(
            client, request, context, spec.redirect_policy or prevent_redirects
        )

        # Until the handle exists nobody else can release the connection.
        try:
            if spec.response_validator is not None:
                await _validate(spec.response_validator, response, context)

            content_type = negotiate_content_type(spec.content_type, response.headers)
            handle = LocationStream(response, context)
        except BaseException:
            await response.aclose()
            raise

        logger.info(
            "location_stream_opened",
            location=str(response.url),
            status_code=response.status_code,
            content_type=content_type,
            flush=spec.flush,
            category="stream",
        )

        return StreamResult(stream=handle, flush=spec.flush, content_type=content_type)


async def stream(
    context: StreamContext | None,
    spec: StreamRequestSpec,
    *,
    default_transport: httpx.AsyncBaseTransport | None = None,
) -> StreamResult:
    """Stream ``spec.location``; see ``LocationStreamer.stream``."""
    return await LocationStreamer(spec, default_transport=default_transport).stream(
        context
    )


def _build_request(
    client: httpx.AsyncClient, location: str | httpx.URL | None
) -> httpx.Request:
    try:
        url = httpx.URL(location)  # type: ignore[arg-type]
    except (httpx.InvalidURL, TypeError) as e:
        raise RequestConstructionError(
            f"failed to construct request for {location}, got {e}"
        ) from e

    if url.scheme not in ("http", "https") or not url.host:
        raise RequestConstructionError(
            f"failed to construct request for {location}, "
            "got a location without an http(s) scheme and host"
        )
    return client.build_request("GET", url)


async def _send(
    client: httpx.AsyncClient,
    request: httpx.Request,
    context: StreamContext,
    redirect_policy: RedirectPolicy,
) -> httpx.Response:
    via: list[httpx.Request] = []
    while True:
        try:
            response = await context.run(
                client.send(request, stream=True), discard=httpx.Response.aclose
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(
                f"GET {request.url}: {e}",
                details={"error_type": type(e).__name__},
            ) from e
        via.append(request)

        next_request = response.next_request
        if next_request is None:
            return response

        await response.aclose()
        logger.debug(
            "location_stream_redirect",
            location=str(request.url),
            target=str(next_request.url),
            status_code=response.status_code,
            hops=len(via),
        )
        _check_redirect(redirect_policy, next_request, via)
        request = next_request


def _check_redirect(
    policy: RedirectPolicy, request: httpx.Request, via: Sequence[httpx.Request]
) -> None:
    try:
        policy(request, tuple(via))
    except RedirectRejectedError:
        raise
    except Exception as e:
        raise RedirectRejectedError(str(e), details={"location": str(request.url)}) from e


async def _validate(
    validator: ResponseValidator, response: httpx.Response, context: StreamContext
) -> None:
    try:
        outcome = validator.check(response)
        if inspect.isawaitable(outcome):
            await context.run(outcome)
    except (ValidationRejectedError, ContextCancelledError):
        raise
    except Exception as e:
        raise ValidationRejectedError(
            str(e) or type(e).__name__,
            details={"status_code": response.status_code},
        ) from e
