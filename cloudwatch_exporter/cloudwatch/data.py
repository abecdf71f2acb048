from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple

from ..rules import DimensionSet, MetricRule, Statistic
from .labels import dimensions_to_key


@dataclass
class MetricRuleData:
    """Values fetched for one dimension set of a rule."""

    timestamp: datetime
    unit: str
    statistic_values: Dict[Statistic, float] = field(default_factory=dict)
    extended_values: Dict[str, float] = field(default_factory=dict)


class DataGetter(ABC):
    """Fetches all data for a rule on construction; lookups are map reads."""

    def __init__(self) -> None:
        self.results: Dict[str, MetricRuleData] = {}

    @abstractmethod
    def _fetch(self) -> Dict[str, MetricRuleData]:
        pass

    def metric_rule_data_for(
        self, dimensions: DimensionSet
    ) -> Optional[MetricRuleData]:
        return self.results.get(dimensions_to_key(dimensions))


def query_window(rule: MetricRule, start: float) -> Tuple[datetime, datetime]:
    """Return (start_time, end_time) of the rule's window for a scrape at start."""
    now = datetime.fromtimestamp(start, tz=timezone.utc)
    end_time = now - timedelta(seconds=rule.delay_seconds)
    start_time = end_time - timedelta(seconds=rule.range_seconds)
    return start_time, end_time
