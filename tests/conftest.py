"""Shared test fixtures and configuration for vcstream tests.

Upstreams are simulated with ``httpx.MockTransport`` so every test is
deterministic and never touches the network.
"""

from collections.abc import Callable, Generator

import httpx
import pytest

from vcstream.core import http_client
from vcstream.core.logging import setup_logging
from vcstream.models.records import ConfigRecord
from vcstream.tenant import (
    VIRTUAL_CLUSTER_INFO_NAME,
    VIRTUAL_CLUSTER_INFO_NAMESPACE,
    VIRTUAL_CLUSTER_NAME_DATA_KEY,
    InMemoryConfigStore,
)


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom settings."""
    config.option.asyncio_mode = "auto"

    # Reuse the application logging pipeline so structlog processors behave
    # identically in tests.
    setup_logging(json_logs=False, log_level_name="DEBUG")


@pytest.fixture(autouse=True)
def reset_default_transport() -> Generator[None, None, None]:
    """Make sure no test leaks a default transport into the next one."""
    http_client.set_default_transport(None)
    yield
    http_client.set_default_transport(None)


@pytest.fixture
def tenant_record() -> ConfigRecord:
    return ConfigRecord(
        namespace=VIRTUAL_CLUSTER_INFO_NAMESPACE,
        name=VIRTUAL_CLUSTER_INFO_NAME,
        data={VIRTUAL_CLUSTER_NAME_DATA_KEY: "tenant-a"},
    )


@pytest.fixture
def config_store(tenant_record: ConfigRecord) -> InMemoryConfigStore:
    """Configuration lookup holding the virtual-cluster info record."""
    return InMemoryConfigStore([tenant_record])


class FailingConfigStore:
    """Configuration lookup whose every fetch fails."""

    def __init__(self) -> None:
        self.calls = 0

    async def get(self, namespace: str, name: str) -> ConfigRecord:
        self.calls += 1
        raise ConnectionError("configuration store unavailable")


@pytest.fixture
def failing_config_store() -> FailingConfigStore:
    return FailingConfigStore()


class RecordingTransport(httpx.MockTransport):
    """Mock transport that remembers every request it receives."""

    def __init__(self, handler: Callable[[httpx.Request], object]) -> None:
        self.requests: list[httpx.Request] = []

        async def recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            response = handler(request)
            if not isinstance(response, httpx.Response):
                response = await response  # type: ignore[misc]
            return response

        super().__init__(recording_handler)


@pytest.fixture
def make_transport() -> Callable[..., RecordingTransport]:
    """Build a recording mock transport from a request handler."""

    def _make(handler: Callable[[httpx.Request], object]) -> RecordingTransport:
        return RecordingTransport(handler)

    return _make


class TrackingStream(httpx.AsyncByteStream):
    """Response body stream that records whether it was closed."""

    def __init__(self, chunks: list[bytes]) -> None:
        self.chunks = chunks
        self.closed = False

    async def __aiter__(self):  # type: ignore[override]
        for chunk in self.chunks:
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def make_tracking_stream() -> Callable[[list[bytes]], TrackingStream]:
    """Build response body streams that record whether they were closed."""
    return TrackingStream
