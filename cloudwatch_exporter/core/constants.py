"""Constants shared across the cloudwatch_exporter package."""

from typing import Final, Tuple

# Config defaults
DEFAULT_PERIOD_SECONDS: Final[int] = 60
DEFAULT_RANGE_SECONDS: Final[int] = 600
DEFAULT_DELAY_SECONDS: Final[int] = 600
DEFAULT_SET_TIMESTAMP: Final[bool] = True
DEFAULT_USE_GET_METRIC_DATA: Final[bool] = False
DEFAULT_LIST_METRICS_CACHE_TTL: Final[int] = 0
ROLE_SESSION_NAME: Final[str] = "cloudwatch_exporter"

# ListMetrics only reports recently active metrics below this range
RECENTLY_ACTIVE_WINDOW_SECONDS: Final[int] = 3 * 60 * 60
RECENTLY_ACTIVE: Final[str] = "PT3H"

# GetMetricData limits
MAX_QUERIES_PER_REQUEST: Final[int] = 500
# https://aws.amazon.com/cloudwatch/pricing/
MAX_STATS_PER_BILLED_METRIC_REQUEST: Final[int] = 5

# Known mislabeled DynamoDB metrics when a GSI dimension is present
BROKEN_DYNAMO_NAMESPACE: Final[str] = "AWS/DynamoDB"
BROKEN_DYNAMO_INDEX_DIMENSION: Final[str] = "GlobalSecondaryIndexName"
BROKEN_DYNAMO_METRICS: Final[Tuple[str, ...]] = (
    "ConsumedReadCapacityUnits",
    "ConsumedWriteCapacityUnits",
    "ProvisionedReadCapacityUnits",
    "ProvisionedWriteCapacityUnits",
    "ReadThrottleEvents",
    "WriteThrottleEvents",
)

# Exposition
RESOURCE_INFO_METRIC: Final[str] = "aws_resource_info"
RESOURCE_INFO_HELP: Final[str] = "AWS information available for resource"
SCRAPE_DURATION_METRIC: Final[str] = "cloudwatch_exporter_scrape_duration_seconds"
SCRAPE_ERROR_METRIC: Final[str] = "cloudwatch_exporter_scrape_error"

# API action names used as counter labels
LIST_METRICS: Final[str] = "listMetrics"
GET_METRIC_STATISTICS: Final[str] = "getMetricStatistics"
GET_METRIC_DATA: Final[str] = "getMetricData"
GET_RESOURCES: Final[str] = "getResources"

# Logging
LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
