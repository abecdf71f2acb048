class CloudWatchExporterError(Exception):
    """Base exception for cloudwatch_exporter package."""

    pass


class ConfigError(CloudWatchExporterError):
    """Raised when a configuration or metric rule is malformed."""

    pass


class ProtocolError(CloudWatchExporterError):
    """Raised when a GetMetricData result label cannot be decoded."""

    def __init__(self, label: str):
        super().__init__(f"Cannot decode label {label}")
        self.label = label


class UpstreamError(CloudWatchExporterError):
    """Raised when a CloudWatch or Tagging API call fails."""

    pass
