import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Pattern, Tuple

from .core.constants import (
    DEFAULT_DELAY_SECONDS,
    DEFAULT_LIST_METRICS_CACHE_TTL,
    DEFAULT_PERIOD_SECONDS,
    DEFAULT_RANGE_SECONDS,
    DEFAULT_SET_TIMESTAMP,
    DEFAULT_USE_GET_METRIC_DATA,
)
from .core.exceptions import ConfigError


class Statistic(str, Enum):
    SUM = "Sum"
    SAMPLE_COUNT = "SampleCount"
    MINIMUM = "Minimum"
    MAXIMUM = "Maximum"
    AVERAGE = "Average"

    @property
    def suffix(self) -> str:
        return _STATISTIC_SUFFIXES[self]

    @classmethod
    def from_value(cls, value: str) -> Optional["Statistic"]:
        """Return the standard statistic named by value, or None for extended ones."""
        try:
            return cls(value)
        except ValueError:
            return None


_STATISTIC_SUFFIXES = {
    Statistic.SUM: "_sum",
    Statistic.SAMPLE_COUNT: "_sample_count",
    Statistic.MINIMUM: "_minimum",
    Statistic.MAXIMUM: "_maximum",
    Statistic.AVERAGE: "_average",
}


class Dimension(NamedTuple):
    name: str
    value: str


# One concrete CloudWatch time series within a namespace/metric
DimensionSet = Tuple[Dimension, ...]


def dimension_set_from_api(dimensions: List[Dict[str, str]]) -> DimensionSet:
    return tuple(Dimension(d["Name"], d["Value"]) for d in dimensions)


def dimension_set_to_api(dimensions: DimensionSet) -> List[Dict[str, str]]:
    return [{"Name": d.name, "Value": d.value} for d in dimensions]


class DimensionSelect(ABC):
    """How the listed dimension values of a rule are narrowed down."""

    @abstractmethod
    def matches(self, dimensions: DimensionSet) -> bool:
        pass

    def pinned_value(self, dimension_name: str) -> Optional[str]:
        """A single value that can be pushed down into the ListMetrics filter."""
        return None


class AllDimensions(DimensionSelect):
    def matches(self, dimensions: DimensionSet) -> bool:
        return True

    def __repr__(self) -> str:
        return "AllDimensions()"


class ExactDimensionSelect(DimensionSelect):
    def __init__(self, allowed: Dict[str, List[str]]):
        self.allowed: Dict[str, Tuple[str, ...]] = {
            name: tuple(str(v) for v in values) for name, values in allowed.items()
        }

    def matches(self, dimensions: DimensionSet) -> bool:
        for dimension in dimensions:
            values = self.allowed.get(dimension.name)
            if values is not None and dimension.value not in values:
                return False
        return True

    def pinned_value(self, dimension_name: str) -> Optional[str]:
        values = self.allowed.get(dimension_name)
        if values is not None and len(values) == 1:
            return values[0]
        return None

    def __repr__(self) -> str:
        return f"ExactDimensionSelect({self.allowed})"


class RegexDimensionSelect(DimensionSelect):
    # Patterns may match anywhere in the value, not only the whole of it
    def __init__(self, allowed: Dict[str, List[str]]):
        self.patterns: Dict[str, Tuple[Pattern, ...]] = {}
        for name, expressions in allowed.items():
            try:
                self.patterns[name] = tuple(re.compile(str(e)) for e in expressions)
            except re.error as e:
                raise ConfigError(
                    f"Invalid aws_dimension_select_regex for '{name}': {e}"
                ) from e

    def matches(self, dimensions: DimensionSet) -> bool:
        for dimension in dimensions:
            patterns = self.patterns.get(dimension.name)
            if patterns is None:
                continue
            if not any(p.search(dimension.value) for p in patterns):
                return False
        return True

    def __repr__(self) -> str:
        expressions = {k: [p.pattern for p in v] for k, v in self.patterns.items()}
        return f"RegexDimensionSelect({expressions})"


ALL_DIMENSIONS = AllDimensions()


@dataclass(frozen=True)
class TagSelect:
    """Selects CloudWatch dimensions from resources matching tag filters."""

    resource_type: str
    resource_id_dimension: str
    tag_filters: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TagSelect":
        if not isinstance(data, dict):
            raise ConfigError("aws_tag_select must be a mapping")
        if "resource_type_selection" not in data or "resource_id_dimension" not in data:
            raise ConfigError(
                "Must provide resource_type_selection and resource_id_dimension"
            )
        tag_filters = data.get("tag_selections") or {}
        return cls(
            resource_type=str(data["resource_type_selection"]),
            resource_id_dimension=str(data["resource_id_dimension"]),
            tag_filters={
                str(key): [values] if isinstance(values, str) else [str(v) for v in values or []]
                for key, values in tag_filters.items()
            },
        )


@dataclass(frozen=True)
class RuleDefaults:
    """Top-level settings inherited by rules that do not override them."""

    period_seconds: int = DEFAULT_PERIOD_SECONDS
    range_seconds: int = DEFAULT_RANGE_SECONDS
    delay_seconds: int = DEFAULT_DELAY_SECONDS
    use_source_timestamp: bool = DEFAULT_SET_TIMESTAMP
    use_bulk_fetch: bool = DEFAULT_USE_GET_METRIC_DATA
    cache_ttl: int = DEFAULT_LIST_METRICS_CACHE_TTL

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RuleDefaults":
        return cls(
            period_seconds=_seconds(data, "period_seconds", DEFAULT_PERIOD_SECONDS),
            range_seconds=_seconds(data, "range_seconds", DEFAULT_RANGE_SECONDS),
            delay_seconds=_seconds(data, "delay_seconds", DEFAULT_DELAY_SECONDS),
            use_source_timestamp=_flag(data, "set_timestamp", DEFAULT_SET_TIMESTAMP),
            use_bulk_fetch=_flag(
                data, "use_get_metric_data", DEFAULT_USE_GET_METRIC_DATA
            ),
            cache_ttl=_seconds(
                data, "list_metrics_cache_ttl", DEFAULT_LIST_METRICS_CACHE_TTL
            ),
        )


# eq=False keeps identity hashing, rules are used as dimension cache keys
@dataclass(frozen=True, eq=False)
class MetricRule:
    """One CloudWatch metric to collect.

    Attributes:
        namespace (str): CloudWatch namespace, e.g. 'AWS/ELB'
        metric_name (str): CloudWatch metric name, e.g. 'RequestCount'
        dimensions (Tuple[str, ...]): dimension names every series must carry
        dimension_select (DimensionSelect): filter applied to listed dimension values
        statistics (Tuple[Statistic, ...]): standard statistics to fetch
        extended_statistics (Tuple[str, ...]): percentile style statistics, e.g. 'p99'
        period_seconds (int): statistic period
        range_seconds (int): width of the query window
        delay_seconds (int): how far the window ends before now
        use_bulk_fetch (bool): use GetMetricData instead of GetMetricStatistics
        use_source_timestamp (bool): export the CloudWatch datapoint timestamp
        tag_select (TagSelect): optional tag based resource selection
        cache_ttl (int): dimension cache TTL override in seconds, None for the default
        help (str): optional help text for the exported families
    """

    namespace: str
    metric_name: str
    dimensions: Tuple[str, ...] = ()
    dimension_select: DimensionSelect = ALL_DIMENSIONS
    statistics: Tuple[Statistic, ...] = tuple(Statistic)
    extended_statistics: Tuple[str, ...] = ()
    period_seconds: int = DEFAULT_PERIOD_SECONDS
    range_seconds: int = DEFAULT_RANGE_SECONDS
    delay_seconds: int = DEFAULT_DELAY_SECONDS
    use_bulk_fetch: bool = DEFAULT_USE_GET_METRIC_DATA
    use_source_timestamp: bool = DEFAULT_SET_TIMESTAMP
    tag_select: Optional[TagSelect] = None
    cache_ttl: Optional[int] = None
    help: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.namespace or not self.metric_name:
            raise ConfigError("Must provide aws_namespace and aws_metric_name")
        if not self.statistics and not self.extended_statistics:
            raise ConfigError(
                f"Rule {self.namespace}/{self.metric_name} requests no statistics"
            )

    @property
    def stat_strings(self) -> List[str]:
        """Standard and extended statistics as the strings CloudWatch expects."""
        return [s.value for s in self.statistics] + list(self.extended_statistics)

    def effective_cache_ttl(self, default_ttl: int) -> int:
        return default_ttl if self.cache_ttl is None else self.cache_ttl

    def __repr__(self) -> str:
        return f"MetricRule({self.namespace}/{self.metric_name}, dimensions={list(self.dimensions)})"

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], defaults: Optional[RuleDefaults] = None
    ) -> "MetricRule":
        """Create a MetricRule from one entry of the 'metrics' config list."""
        defaults = defaults or RuleDefaults()
        if not isinstance(data, dict):
            raise ConfigError(f"Metric rule must be a mapping, got: {data!r}")
        if "aws_namespace" not in data or "aws_metric_name" not in data:
            raise ConfigError("Must provide aws_namespace and aws_metric_name")
        if "aws_dimension_select" in data and "aws_dimension_select_regex" in data:
            raise ConfigError(
                "Must not provide aws_dimension_select and aws_dimension_select_regex at the same time"
            )

        dimension_select: DimensionSelect = ALL_DIMENSIONS
        if "aws_dimension_select" in data:
            dimension_select = ExactDimensionSelect(
                _string_lists(data, "aws_dimension_select")
            )
        elif "aws_dimension_select_regex" in data:
            dimension_select = RegexDimensionSelect(
                _string_lists(data, "aws_dimension_select_regex")
            )

        if "aws_statistics" in data:
            statistics = tuple(_statistic(s) for s in data["aws_statistics"] or [])
        elif "aws_extended_statistics" in data:
            statistics = ()
        else:
            statistics = tuple(Statistic)

        tag_select = None
        if "aws_tag_select" in data:
            tag_select = TagSelect.from_dict(data["aws_tag_select"])

        cache_ttl = None
        if "list_metrics_cache_ttl" in data:
            cache_ttl = _seconds(data, "list_metrics_cache_ttl", 0)

        return cls(
            namespace=str(data["aws_namespace"]),
            metric_name=str(data["aws_metric_name"]),
            dimensions=tuple(str(d) for d in data.get("aws_dimensions") or []),
            dimension_select=dimension_select,
            statistics=statistics,
            extended_statistics=tuple(
                str(s) for s in data.get("aws_extended_statistics") or []
            ),
            period_seconds=_seconds(data, "period_seconds", defaults.period_seconds),
            range_seconds=_seconds(data, "range_seconds", defaults.range_seconds),
            delay_seconds=_seconds(data, "delay_seconds", defaults.delay_seconds),
            use_bulk_fetch=_flag(data, "use_get_metric_data", defaults.use_bulk_fetch),
            use_source_timestamp=_flag(
                data, "set_timestamp", defaults.use_source_timestamp
            ),
            tag_select=tag_select,
            cache_ttl=cache_ttl,
            help=data.get("help"),
        )


def _statistic(value: Any) -> Statistic:
    statistic = Statistic.from_value(str(value))
    if statistic is None:
        raise ConfigError(f"Unknown statistic in aws_statistics: {value}")
    return statistic


def _seconds(data: Dict[str, Any], key: str, default: int) -> int:
    if key not in data:
        return default
    value = data[key]
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a number of seconds, got: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key} must be a number of seconds, got: {value!r}") from e


def _flag(data: Dict[str, Any], key: str, default: bool) -> bool:
    if key not in data:
        return default
    value = data[key]
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false, got: {value!r}")
    return value


def _string_lists(data: Dict[str, Any], key: str) -> Dict[str, List[str]]:
    value = data[key]
    if not isinstance(value, dict):
        raise ConfigError(f"{key} must map dimension names to lists of values")
    return {
        str(name): [values] if isinstance(values, str) else [str(v) for v in values or []]
        for name, values in value.items()
    }
