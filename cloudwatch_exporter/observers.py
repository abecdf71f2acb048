from abc import ABC, abstractmethod
from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter


class RequestObserver(ABC):
    """Receives a notification for every outbound API request."""

    @abstractmethod
    def cloudwatch_request(self, action: str, namespace: str) -> None:
        pass

    @abstractmethod
    def metrics_requested(
        self, metric_name: str, namespace: str, amount: float = 1
    ) -> None:
        pass

    @abstractmethod
    def tagging_request(self, action: str, resource_type: str) -> None:
        pass


class NullRequestObserver(RequestObserver):
    def cloudwatch_request(self, action: str, namespace: str) -> None:
        pass

    def metrics_requested(
        self, metric_name: str, namespace: str, amount: float = 1
    ) -> None:
        pass

    def tagging_request(self, action: str, resource_type: str) -> None:
        pass


class PrometheusRequestObserver(RequestObserver):
    """Counts API requests with prometheus_client counters."""

    def __init__(self, registry: Optional[CollectorRegistry] = REGISTRY) -> None:
        self.cloudwatch_requests = Counter(
            "cloudwatch_requests",
            "API requests made to CloudWatch",
            ["action", "namespace"],
            registry=registry,
        )
        self.cloudwatch_metrics_requested = Counter(
            "cloudwatch_metrics_requested",
            "Metrics requested by either GetMetricStatistics or GetMetricData",
            ["metric_name", "namespace"],
            registry=registry,
        )
        self.tagging_api_requests = Counter(
            "tagging_api_requests",
            "API requests made to the Resource Groups Tagging API",
            ["action", "resource_type"],
            registry=registry,
        )

    def cloudwatch_request(self, action: str, namespace: str) -> None:
        self.cloudwatch_requests.labels(action, namespace).inc()

    def metrics_requested(
        self, metric_name: str, namespace: str, amount: float = 1
    ) -> None:
        self.cloudwatch_metrics_requested.labels(metric_name, namespace).inc(amount)

    def tagging_request(self, action: str, resource_type: str) -> None:
        self.tagging_api_requests.labels(action, resource_type).inc()
