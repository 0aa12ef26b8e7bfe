"""Default upstream transport management.

The streamer never owns a transport: it borrows either the one configured on
its request spec or the process-wide default managed here. The default is an
explicit, replaceable object so tests and embedders can inject their own.
"""

import os
import ssl
from pathlib import Path

import httpx

from vcstream.config.settings import Settings, get_settings
from vcstream.core.logging import get_logger


logger = get_logger(__name__)


class TransportFactory:
    """Factory for upstream transports built from ``HTTPSettings``."""

    @staticmethod
    def create_transport(
        settings: Settings | None = None,
    ) -> httpx.AsyncHTTPTransport:
        """Create a pooled transport.

        Args:
            settings: Optional settings object; the process settings are used when omitted

        Returns:
            Configured httpx.AsyncHTTPTransport instance
        """
        http_settings = (settings or get_settings()).http

        proxy = _get_proxy_url() if http_settings.trust_env else None
        verify: bool | ssl.SSLContext = http_settings.verify
        if verify and http_settings.trust_env:
            ca_bundle = _get_ca_bundle()
            if ca_bundle is not None:
                verify = ssl.create_default_context(cafile=ca_bundle)

        limits = httpx.Limits(
            max_connections=http_settings.max_connections,
            max_keepalive_connections=http_settings.max_keepalive_connections,
            keepalive_expiry=http_settings.keepalive_expiry,
        )

        transport = httpx.AsyncHTTPTransport(
            limits=limits,
            http2=http_settings.http2,
            verify=verify,
            proxy=proxy,
        )

        logger.info(
            "default_transport_created",
            max_connections=http_settings.max_connections,
            max_keepalive_connections=http_settings.max_keepalive_connections,
            http2=http_settings.http2,
            has_proxy=proxy is not None,
            verify=verify if isinstance(verify, bool) else "ca_bundle",
        )

        return transport


def _get_proxy_url() -> str | None:
    """Get proxy URL from environment variables.

    Returns:
        str or None: Proxy URL if any proxy is set
    """
    # For HTTPS requests, prioritize HTTPS_PROXY
    https_proxy = os.environ.get("HTTPS_PROXY") or os.environ.get("https_proxy")
    all_proxy = os.environ.get("ALL_PROXY")
    http_proxy = os.environ.get("HTTP_PROXY") or os.environ.get("http_proxy")

    proxy_url = https_proxy or all_proxy or http_proxy

    if proxy_url:
        logger.debug("proxy_configured", proxy_url=proxy_url)

    return proxy_url


def _get_ca_bundle() -> str | None:
    """Get a custom CA bundle path from environment variables, if it exists."""
    ca_bundle = os.environ.get("REQUESTS_CA_BUNDLE") or os.environ.get("SSL_CERT_FILE")

    if ca_bundle and Path(ca_bundle).exists():
        logger.info("ssl_ca_bundle_configured", ca_bundle_path=ca_bundle)
        return ca_bundle
    return None


# Singleton instance management
_default_transport: httpx.AsyncBaseTransport | None = None


def get_default_transport(settings: Settings | None = None) -> httpx.AsyncBaseTransport:
    """Get the process-wide default transport, creating it on first access.

    Args:
        settings: Optional settings used only when the transport is created

    Returns:
        The shared transport instance
    """
    global _default_transport

    if _default_transport is None:
        _default_transport = TransportFactory.create_transport(settings)

    return _default_transport


def set_default_transport(transport: httpx.AsyncBaseTransport | None) -> None:
    """Replace the process-wide default transport.

    The previous transport is not closed; whoever created it still owns it.
    Passing None makes the next ``get_default_transport`` build a fresh one.
    """
    global _default_transport

    _default_transport = transport
    logger.debug("default_transport_replaced", injected=transport is not None)


async def close_default_transport() -> None:
    """Close the default transport and reset the singleton.

    This should be called during application shutdown to release pooled
    connections.
    """
    global _default_transport

    if _default_transport is not None:
        await _default_transport.aclose()
        _default_transport = None
        logger.info("default_transport_closed")
