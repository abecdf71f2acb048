import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Tuple

from ..rules import DimensionSet, MetricRule
from .resolver import DimensionResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DimensionCacheEntry:
    dimension_sets: Tuple[DimensionSet, ...]
    fetched_at: float
    ttl: float
    resource_ids: Tuple[str, ...] = ()

    def is_expired(self, now: float) -> bool:
        return now - self.fetched_at >= self.ttl

    def is_valid_for(self, resource_ids: Tuple[str, ...], now: float) -> bool:
        return self.resource_ids == resource_ids and not self.is_expired(now)


class CachingDimensionResolver(DimensionResolver):
    """Caches another resolver's dimension sets per rule for the rule's TTL.

    Each rule holds at most one entry. A change in the tag based resource ids
    counts as a miss and replaces the rule's entry.

    Entries are replaced whole, so concurrent scrapes see either the old or
    the refreshed entry. Two scrapes may refresh the same entry at once.
    """

    def __init__(
        self,
        delegate: DimensionResolver,
        default_ttl: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.delegate = delegate
        self.default_ttl = default_ttl
        self.clock = clock
        self._entries: Dict[MetricRule, DimensionCacheEntry] = {}

    @classmethod
    def create(
        cls,
        delegate: DimensionResolver,
        default_ttl: float,
        rules: Sequence[MetricRule],
    ) -> DimensionResolver:
        """Wrap delegate only when the default or some rule enables caching."""
        if default_ttl > 0 or any((rule.cache_ttl or 0) > 0 for rule in rules):
            return cls(delegate, default_ttl)
        return delegate

    def get_dimensions(
        self, rule: MetricRule, tag_based_resource_ids: Sequence[str]
    ) -> List[DimensionSet]:
        ttl = rule.effective_cache_ttl(self.default_ttl)
        if ttl <= 0:
            return self.delegate.get_dimensions(rule, tag_based_resource_ids)

        resource_ids = tuple(sorted(tag_based_resource_ids))
        now = self.clock()
        entry = self._entries.get(rule)
        if entry is not None and entry.is_valid_for(resource_ids, now):
            logger.debug(f"Dimension cache hit for {rule}")
            return list(entry.dimension_sets)

        logger.debug(f"Dimension cache {'refresh' if entry else 'miss'} for {rule}")
        dimension_sets = self.delegate.get_dimensions(rule, tag_based_resource_ids)
        self._entries[rule] = DimensionCacheEntry(
            dimension_sets=tuple(dimension_sets),
            fetched_at=now,
            ttl=ttl,
            resource_ids=resource_ids,
        )
        return list(dimension_sets)
