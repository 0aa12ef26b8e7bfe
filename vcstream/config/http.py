"""HTTP transport configuration settings."""

from pydantic import BaseModel, ConfigDict, Field


class HTTPSettings(BaseModel):
    """Settings for the process-wide default upstream transport.

    Only connection-pool behaviour lives here. Request deadlines come from the
    caller's execution context, never from the transport.
    """

    model_config = ConfigDict(validate_assignment=True)

    max_connections: int = Field(
        default=100,
        ge=1,
        description="Maximum number of concurrent upstream connections",
    )

    max_keepalive_connections: int = Field(
        default=20,
        ge=0,
        description="Maximum number of idle keep-alive connections kept in the pool",
    )

    keepalive_expiry: float = Field(
        default=5.0,
        ge=0,
        description="Seconds an idle keep-alive connection is kept before closing",
    )

    http2: bool = Field(
        default=False,
        description="Enable HTTP/2 for upstream connections (requires httpx[http2])",
    )

    verify: bool = Field(
        default=True,
        description="Verify upstream TLS certificates",
    )

    trust_env: bool = Field(
        default=True,
        description="Honour HTTPS_PROXY/HTTP_PROXY and CA bundle environment variables",
    )
