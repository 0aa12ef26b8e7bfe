from ._version import __version__
from .context import StreamContext
from .exceptions import (
    ConfigurationLookupError,
    ContextCancelledError,
    DeadlineExceededError,
    RedirectRejectedError,
    RequestConstructionError,
    StreamError,
    TransportError,
    UpstreamStatusError,
    ValidationRejectedError,
)
from .models import ConfigRecord
from .policies import (
    StatusCodeValidator,
    accept_all,
    limit_redirects,
    prevent_redirects,
)
from .stream import LocationStream
from .streamer import LocationStreamer, StreamRequestSpec, StreamResult, stream
from .tenant import InMemoryConfigStore, TenantResolver


__all__ = [
    "__version__",
    "ConfigRecord",
    "ConfigurationLookupError",
    "ContextCancelledError",
    "DeadlineExceededError",
    "InMemoryConfigStore",
    "LocationStream",
    "LocationStreamer",
    "RedirectRejectedError",
    "RequestConstructionError",
    "StatusCodeValidator",
    "StreamContext",
    "StreamError",
    "StreamRequestSpec",
    "StreamResult",
    "TenantResolver",
    "TransportError",
    "UpstreamStatusError",
    "ValidationRejectedError",
    "accept_all",
    "limit_redirects",
    "prevent_redirects",
    "stream",
]
