from .exceptions import (
    CloudWatchExporterError,
    ConfigError,
    ProtocolError,
    UpstreamError,
)
from .session import AwsClients, build_clients

__all__ = [
    # Errors
    "CloudWatchExporterError",
    "ConfigError",
    "ProtocolError",
    "UpstreamError",
    # AWS clients
    "AwsClients",
    "build_clients",
]
