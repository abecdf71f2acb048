import logging
import math
import uuid
from typing import Any, Dict, List, Optional, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from ..core.constants import (
    GET_METRIC_DATA,
    MAX_QUERIES_PER_REQUEST,
    MAX_STATS_PER_BILLED_METRIC_REQUEST,
)
from ..core.exceptions import UpstreamError
from ..observers import NullRequestObserver, RequestObserver
from ..rules import DimensionSet, MetricRule, Statistic, dimension_set_to_api
from .data import DataGetter, MetricRuleData, query_window
from .labels import decode_label, label_for, partition_by_max_size

logger = logging.getLogger(__name__)


def billed_metric_requests(stat_count: int) -> int:
    """CloudWatch bills up to five statistics of one metric as a single metric."""
    return math.ceil(stat_count / MAX_STATS_PER_BILLED_METRIC_REQUEST)


class GetMetricDataDataGetter(DataGetter):
    """Multiplexes every (statistic, dimension set) pair into GetMetricData calls."""

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
        self.metric_requested_for_billing = 0
        self.results = self._fetch()

    def _fetch(self) -> Dict[str, MetricRuleData]:
        results: List[Dict] = []
        for request in self._build_metric_data_requests():
            logger.debug(
                f"GetMetricData for {self.rule} with {len(request['MetricDataQueries'])} queries"
            )
            try:
                response = self.client.get_metric_data(**request)
            except (BotoCoreError, ClientError) as e:
                logger.error(f"GetMetricData failed for {self.rule}: {e}")
                raise UpstreamError(f"GetMetricData failed for {self.rule}: {e}") from e
            self.observer.cloudwatch_request(GET_METRIC_DATA, self.rule.namespace)
            results.extend(response.get("MetricDataResults", []))

        self.observer.metrics_requested(
            self.rule.metric_name,
            self.rule.namespace,
            self.metric_requested_for_billing,
        )
        return self._to_map(results)

    def _build_metric_data_requests(self) -> List[Dict]:
        start_time, end_time = query_window(self.rule, self.start)
        queries = self._build_metric_data_queries()
        return [
            {
                "MetricDataQueries": batch,
                "StartTime": start_time,
                "EndTime": end_time,
                "ScanBy": "TimestampDescending",
            }
            for batch in partition_by_max_size(queries, MAX_QUERIES_PER_REQUEST)
        ]

    def _build_metric_data_queries(self) -> List[Dict]:
        stats = self.rule.stat_strings
        queries = [
            self._build_query(stat, dimensions)
            for stat in stats
            for dimensions in self.dimension_sets
        ]
        self.metric_requested_for_billing += billed_metric_requests(len(set(stats)))
        return queries

    def _build_query(self, stat: str, dimensions: DimensionSet) -> Dict:
        return {
            # Only has to be unique within the request
            "Id": "i" + uuid.uuid4().hex,
            # Used to route the result back to its statistic and dimension set
            "Label": label_for(stat, dimensions),
            "MetricStat": {
                "Metric": {
                    "Namespace": self.rule.namespace,
                    "MetricName": self.rule.metric_name,
                    "Dimensions": dimension_set_to_api(dimensions),
                },
                "Period": self.rule.period_seconds,
                "Stat": stat,
            },
        }

    @staticmethod
    def _to_map(metric_data_results: List[Dict]) -> Dict[str, MetricRuleData]:
        res: Dict[str, MetricRuleData] = {}
        for result in metric_data_results:
            timestamps = result.get("Timestamps") or []
            values = result.get("Values") or []
            if not timestamps or not values:
                continue
            stat, dimensions_key = decode_label(result["Label"])
            data = res.setdefault(
                dimensions_key, MetricRuleData(timestamp=timestamps[0], unit="N/A")
            )
            statistic = Statistic.from_value(stat)
            if statistic is None:
                data.extended_values[stat] = float(values[0])
            else:
                data.statistic_values[statistic] = float(values[0])
        return res
