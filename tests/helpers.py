from datetime import datetime, timezone
from typing import List, Tuple

from botocore.exceptions import ClientError

from cloudwatch_exporter.observers import RequestObserver


class RecordingObserver(RequestObserver):
    """Keeps every request notification for assertions."""

    def __init__(self) -> None:
        self.cloudwatch_requests: List[Tuple[str, str]] = []
        self.metrics_requests: List[Tuple[str, str, float]] = []
        self.tagging_requests: List[Tuple[str, str]] = []

    def cloudwatch_request(self, action: str, namespace: str) -> None:
        self.cloudwatch_requests.append((action, namespace))

    def metrics_requested(self, metric_name: str, namespace: str, amount: float = 1) -> None:
        self.metrics_requests.append((metric_name, namespace, amount))

    def tagging_request(self, action: str, resource_type: str) -> None:
        self.tagging_requests.append((action, resource_type))


def client_error(operation: str, code: str = "Throttling") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "Rate exceeded"}}, operation)


def timestamp(minute: int = 0) -> datetime:
    return datetime(2024, 1, 1, 12, minute, tzinfo=timezone.utc)


def datapoint(minute: int = 0, unit: str = "Count", **values) -> dict:
    point = {"Timestamp": timestamp(minute), "Unit": unit}
    point.update(values)
    return point


def listed_metric(namespace: str, metric_name: str, **dimensions) -> dict:
    return {
        "Namespace": namespace,
        "MetricName": metric_name,
        "Dimensions": [{"Name": k, "Value": v} for k, v in dimensions.items()],
    }


def tag_mapping(arn: str, **tags) -> dict:
    return {"ResourceARN": arn, "Tags": [{"Key": k, "Value": v} for k, v in tags.items()]}


def family(families, name):
    return next((f for f in families if f.name == name), None)
