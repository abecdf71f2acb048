from .data import DataGetter, MetricRuleData, query_window
from .statistics import GetMetricStatisticsDataGetter
from .metric_data import GetMetricDataDataGetter, billed_metric_requests
from .labels import (
    StatAndDimensions,
    decode_label,
    dimensions_to_key,
    label_for,
    partition_by_max_size,
)
from .naming import safe_label_name, safe_name, to_snake_case

__all__ = [
    # Data getters
    "DataGetter",
    "MetricRuleData",
    "GetMetricStatisticsDataGetter",
    "GetMetricDataDataGetter",
    "billed_metric_requests",
    "query_window",
    # Label codec
    "StatAndDimensions",
    "decode_label",
    "dimensions_to_key",
    "label_for",
    "partition_by_max_size",
    # Naming
    "safe_label_name",
    "safe_name",
    "to_snake_case",
]
