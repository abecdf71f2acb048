import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from ..core.constants import (
    LIST_METRICS,
    RECENTLY_ACTIVE,
    RECENTLY_ACTIVE_WINDOW_SECONDS,
)
from ..core.exceptions import UpstreamError
from ..observers import NullRequestObserver, RequestObserver
from ..rules import DimensionSet, MetricRule, dimension_set_from_api

logger = logging.getLogger(__name__)


class DimensionResolver(ABC):
    @abstractmethod
    def get_dimensions(
        self, rule: MetricRule, tag_based_resource_ids: Sequence[str]
    ) -> List[DimensionSet]:
        """Return the dimension sets to query for the rule."""
        pass


class DefaultDimensionResolver(DimensionResolver):
    """Resolves dimension sets from CloudWatch ListMetrics on every call."""

    def __init__(self, client: Any, observer: Optional[RequestObserver] = None):
        self.client = client
        self.observer = observer or NullRequestObserver()

    def get_dimensions(
        self, rule: MetricRule, tag_based_resource_ids: Sequence[str]
    ) -> List[DimensionSet]:
        if not rule.dimensions:
            # The metric itself, without dimensions
            return [()]

        if (
            rule.tag_select is not None
            and rule.tag_select.tag_filters
            and not tag_based_resource_ids
        ):
            logger.debug(f"No tagged resources matched for {rule}, skipping ListMetrics")
            return []

        resource_ids = set(tag_based_resource_ids)
        dimension_sets: Dict[frozenset, DimensionSet] = {}
        for metric in self._list_metrics(rule):
            dimensions = dimension_set_from_api(metric.get("Dimensions", []))
            if self._use_metric(rule, resource_ids, dimensions):
                dimension_sets.setdefault(frozenset(dimensions), dimensions)

        logger.debug(f"Resolved {len(dimension_sets)} dimension sets for {rule}")
        return list(dimension_sets.values())

    def _use_metric(
        self, rule: MetricRule, resource_ids: set, dimensions: DimensionSet
    ) -> bool:
        names = [d.name for d in dimensions]
        if len(names) != len(rule.dimensions) or set(names) != set(rule.dimensions):
            return False
        if not rule.dimension_select.matches(dimensions):
            return False
        if rule.tag_select is not None:
            resource_id = next(
                (
                    d.value
                    for d in dimensions
                    if d.name == rule.tag_select.resource_id_dimension
                ),
                None,
            )
            if resource_id not in resource_ids:
                return False
        return True

    def _build_dimension_filters(self, rule: MetricRule) -> List[Dict[str, str]]:
        filters = []
        for name in rule.dimensions:
            dimension_filter = {"Name": name}
            pinned = rule.dimension_select.pinned_value(name)
            if pinned is not None:
                dimension_filter["Value"] = pinned
            filters.append(dimension_filter)
        return filters

    def _list_metrics(self, rule: MetricRule) -> List[Dict]:
        request = {
            "Namespace": rule.namespace,
            "MetricName": rule.metric_name,
            "Dimensions": self._build_dimension_filters(rule),
        }
        if rule.range_seconds < RECENTLY_ACTIVE_WINDOW_SECONDS:
            request["RecentlyActive"] = RECENTLY_ACTIVE

        metrics: List[Dict] = []
        try:
            paginator = self.client.get_paginator("list_metrics")
            for page in paginator.paginate(**request):
                self.observer.cloudwatch_request(LIST_METRICS, rule.namespace)
                metrics.extend(page.get("Metrics", []))
        except (BotoCoreError, ClientError) as e:
            logger.error(f"ListMetrics failed for {rule}: {e}")
            raise UpstreamError(f"ListMetrics failed for {rule}: {e}") from e
        return metrics
