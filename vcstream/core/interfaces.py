"""Capability interfaces consumed by the location streamer.

Each collaborator is a single-method protocol so callers can plug in their own
acceptance, redirect and lookup semantics without subclassing anything.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

import httpx

from vcstream.models.records import ConfigRecord


__all__ = [
    "ConfigLookup",
    "RedirectPolicy",
    "ResponseValidator",
]


@runtime_checkable
class ConfigLookup(Protocol):
    """Get-by-name configuration store."""

    async def get(self, namespace: str, name: str) -> ConfigRecord:
        """Fetch the record addressed by ``(namespace, name)``.

        Raises:
            Exception: Any failure to fetch the record; callers treat the
                lookup as best-effort
        """
        ...


@runtime_checkable
class ResponseValidator(Protocol):
    """Inspects a completed upstream response before its body is exposed."""

    async def check(self, response: httpx.Response) -> None:
        """Accept the response by returning, reject it by raising.

        The response body has not been read yet; a validator may read it.
        """
        ...


@runtime_checkable
class RedirectPolicy(Protocol):
    """Decides whether a redirect hop may be followed."""

    def __call__(
        self, request: httpx.Request, via: Sequence[httpx.Request]
    ) -> None:
        """Allow the hop to ``request`` by returning, forbid it by raising.

        Args:
            request: The request that following the redirect would send
            via: Requests already sent, oldest first
        """
        ...
