"""
CloudWatch Exporter Package

Republishes Amazon CloudWatch statistics as Prometheus gauges:
- Metric rules loaded from YAML, with reload and fallback to the last good config
- Dimension discovery through ListMetrics and tag based resource selection
- GetMetricStatistics and batched GetMetricData fetching
- A collector that can be registered with prometheus_client
"""

__version__ = "0.1.0"

from .collector import CloudWatchCollector
from .config import (
    Config,
    ConfigSource,
    FallbackConfigSource,
    YamlConfigSource,
    YamlFileConfigSource,
    build_config_source,
)
from .core import ConfigError, ProtocolError, UpstreamError
from .observers import NullRequestObserver, PrometheusRequestObserver, RequestObserver
from .rules import MetricRule, Statistic, TagSelect

__all__ = [
    # Collector
    "CloudWatchCollector",
    # Config related
    "Config",
    "ConfigSource",
    "FallbackConfigSource",
    "YamlConfigSource",
    "YamlFileConfigSource",
    "build_config_source",
    # Rules
    "MetricRule",
    "Statistic",
    "TagSelect",
    # Observers
    "RequestObserver",
    "NullRequestObserver",
    "PrometheusRequestObserver",
    # Errors
    "ConfigError",
    "ProtocolError",
    "UpstreamError",
]
