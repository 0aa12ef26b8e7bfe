"""Stock redirect policies and response validators."""

from collections.abc import Sequence

import httpx

from vcstream.core.interfaces import RedirectPolicy
from vcstream.exceptions import RedirectRejectedError, UpstreamStatusError


# Upper bound on how much of an error body is read into a rejection message
MAX_ERROR_BODY_LENGTH = 50000


def prevent_redirects(request: httpx.Request, via: Sequence[httpx.Request]) -> None:
    """Redirect policy that forbids every redirect."""
    raise RedirectRejectedError(
        "redirects forbidden", details={"location": str(request.url)}
    )


def limit_redirects(max_hops: int = 10) -> RedirectPolicy:
    """Build a redirect policy that follows at most ``max_hops`` redirects."""

    def policy(request: httpx.Request, via: Sequence[httpx.Request]) -> None:
        if len(via) > max_hops:
            raise RedirectRejectedError(
                f"stopped after {max_hops} redirects",
                details={"location": str(request.url), "hops": len(via)},
            )

    return policy


class AcceptAllValidator:
    """Response validator that accepts every response."""

    async def check(self, response: httpx.Response) -> None:
        return None


accept_all = AcceptAllValidator()


class StatusCodeValidator:
    """Accepts 2xx responses up to 206 and rejects everything else.

    A rejected response has up to ``MAX_ERROR_BODY_LENGTH`` bytes of its body
    read into the error so the caller can report what the upstream said.
    """

    def __init__(self, resource: str = "", name: str = ""):
        self.resource = resource
        self.name = name

    async def check(self, response: httpx.Response) -> None:
        status = response.status_code
        if httpx.codes.OK <= status <= httpx.codes.PARTIAL_CONTENT:
            return

        try:
            body = await _read_limited(response, MAX_ERROR_BODY_LENGTH)
        except httpx.HTTPError as e:
            raise UpstreamStatusError(
                f"failed to read upstream error body: {e}", status_code=status
            ) from e
        finally:
            await response.aclose()

        text = body.decode("utf-8", errors="replace")
        details = {"resource": self.resource, "name": self.name}

        if (
            status == httpx.codes.INTERNAL_SERVER_ERROR
            and '"no such file or directory"' in text
        ):
            raise UpstreamStatusError(
                f"{self._describe()} not found", status_code=404, body=text, details=details
            )
        if status == httpx.codes.BAD_REQUEST:
            raise UpstreamStatusError(text, status_code=status, body=text, details=details)

        message = f"the upstream returned {status} for {self._describe()}"
        if text:
            message = f"{message}: {text}"
        raise UpstreamStatusError(
            message,
            status_code=status,
            body=text,
            details=details,
        )

    def _describe(self) -> str:
        if self.resource and self.name:
            return f'{self.resource} "{self.name}"'
        return self.resource or self.name or "the requested location"


async def _read_limited(response: httpx.Response, limit: int) -> bytes:
    buffer = bytearray()
    async for chunk in response.aiter_bytes():
        buffer.extend(chunk[: limit - len(buffer)])
        if len(buffer) >= limit:
            break
    return bytes(buffer)
