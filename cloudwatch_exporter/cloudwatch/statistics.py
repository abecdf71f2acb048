import logging
from typing import Any, Dict, List, Optional, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from ..core.constants import GET_METRIC_STATISTICS
from ..core.exceptions import UpstreamError
from ..observers import NullRequestObserver, RequestObserver
from ..rules import DimensionSet, MetricRule, dimension_set_to_api
from .data import DataGetter, MetricRuleData, query_window
from .labels import dimensions_to_key

logger = logging.getLogger(__name__)


class GetMetricStatisticsDataGetter(DataGetter):
    """One GetMetricStatistics call per dimension set."""

    def __init__(
        self,
        client: Any,
        start: float,
        rule: MetricRule,
        dimension_sets: Sequence[DimensionSet],
        observer: Optional[RequestObserver] = None,
    ):
        super().__init__()
        self.client = client
        self.start = start
        self.rule = rule
        self.dimension_sets = dimension_sets
        self.observer = observer or NullRequestObserver()
        self.results = self._fetch()

    def _fetch(self) -> Dict[str, MetricRuleData]:
        results = {}
        for dimensions in self.dimension_sets:
            data = self._fetch_dimension_set(dimensions)
            if data is not None:
                results[dimensions_to_key(dimensions)] = data
        return results

    def _build_request(self, dimensions: DimensionSet) -> Dict:
        start_time, end_time = query_window(self.rule, self.start)
        request = {
            "Namespace": self.rule.namespace,
            "MetricName": self.rule.metric_name,
            "Dimensions": dimension_set_to_api(dimensions),
            "StartTime": start_time,
            "EndTime": end_time,
            "Period": self.rule.period_seconds,
        }
        if self.rule.statistics:
            request["Statistics"] = [s.value for s in self.rule.statistics]
        if self.rule.extended_statistics:
            request["ExtendedStatistics"] = list(self.rule.extended_statistics)
        return request

    def _fetch_dimension_set(self, dimensions: DimensionSet) -> Optional[MetricRuleData]:
        try:
            response = self.client.get_metric_statistics(
                **self._build_request(dimensions)
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"GetMetricStatistics failed for {self.rule}: {e}")
            raise UpstreamError(
                f"GetMetricStatistics failed for {self.rule}: {e}"
            ) from e
        self.observer.cloudwatch_request(GET_METRIC_STATISTICS, self.rule.namespace)
        self.observer.metrics_requested(self.rule.metric_name, self.rule.namespace)

        datapoint = self._latest_datapoint(response.get("Datapoints", []))
        if datapoint is None:
            return None

        data = MetricRuleData(
            timestamp=datapoint["Timestamp"], unit=datapoint.get("Unit", "N/A")
        )
        for statistic in self.rule.statistics:
            if statistic.value in datapoint:
                data.statistic_values[statistic] = float(datapoint[statistic.value])
        for name, value in datapoint.get("ExtendedStatistics", {}).items():
            data.extended_values[name] = float(value)
        return data

    @staticmethod
    def _latest_datapoint(datapoints: List[Dict]) -> Optional[Dict]:
        if not datapoints:
            return None
        return max(datapoints, key=lambda dp: dp["Timestamp"])
