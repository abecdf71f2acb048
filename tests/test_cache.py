"""
Tests for the per-rule TTL dimension cache.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from cloudwatch_exporter.dimensions.cache import CachingDimensionResolver
from cloudwatch_exporter.dimensions.resolver import DimensionResolver
from cloudwatch_exporter.rules import Dimension, MetricRule


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def delegate():
    resolver = MagicMock(spec=DimensionResolver)
    resolver.get_dimensions.side_effect = [
        [(Dimension("Stage", "prod"),)],
        [(Dimension("Stage", "prod"),), (Dimension("Stage", "dev"),)],
        [(Dimension("Stage", "dev"),)],
    ]
    return resolver


def make_rule(cache_ttl=None):
    return MetricRule(
        namespace="AWS/ApiGateway",
        metric_name="Count",
        dimensions=("Stage",),
        cache_ttl=cache_ttl,
    )


class TestCachingDimensionResolver:
    def test_returns_cached_value_within_ttl(self, delegate, clock):
        cache = CachingDimensionResolver(delegate, default_ttl=60, clock=clock)
        rule = make_rule()

        first = cache.get_dimensions(rule, [])
        clock.now += 59
        second = cache.get_dimensions(rule, [])

        assert first == second == [(Dimension("Stage", "prod"),)]
        assert delegate.get_dimensions.call_count == 1

    def test_refreshes_after_ttl(self, delegate, clock):
        cache = CachingDimensionResolver(delegate, default_ttl=60, clock=clock)
        rule = make_rule()

        cache.get_dimensions(rule, [])
        clock.now += 60
        refreshed = cache.get_dimensions(rule, [])
        clock.now += 10
        cached = cache.get_dimensions(rule, [])

        assert refreshed == [(Dimension("Stage", "prod"),), (Dimension("Stage", "dev"),)]
        assert cached == refreshed
        assert delegate.get_dimensions.call_count == 2

    def test_zero_ttl_disables_caching(self, delegate, clock):
        cache = CachingDimensionResolver(delegate, default_ttl=0, clock=clock)
        rule = make_rule()

        cache.get_dimensions(rule, [])
        cache.get_dimensions(rule, [])

        assert delegate.get_dimensions.call_count == 2

    def test_rule_ttl_overrides_default(self, delegate, clock):
        cache = CachingDimensionResolver(delegate, default_ttl=0, clock=clock)
        cached_rule = make_rule(cache_ttl=300)
        uncached_rule = make_rule(cache_ttl=0)

        cache.get_dimensions(cached_rule, [])
        cache.get_dimensions(cached_rule, [])
        assert delegate.get_dimensions.call_count == 1

        cache.get_dimensions(uncached_rule, [])
        assert delegate.get_dimensions.call_count == 2

    def test_entries_are_per_rule(self, delegate, clock):
        cache = CachingDimensionResolver(delegate, default_ttl=60, clock=clock)

        cache.get_dimensions(make_rule(), [])
        cache.get_dimensions(make_rule(), [])

        assert delegate.get_dimensions.call_count == 2

    def test_entries_are_per_resource_ids(self, delegate, clock):
        cache = CachingDimensionResolver(delegate, default_ttl=60, clock=clock)
        rule = make_rule()

        cache.get_dimensions(rule, ["a", "b"])
        cache.get_dimensions(rule, ["b", "a"])
        cache.get_dimensions(rule, ["c"])

        assert delegate.get_dimensions.call_count == 2

    def test_changed_resource_ids_replace_the_rule_entry(self, clock):
        delegate = MagicMock(spec=DimensionResolver)
        delegate.get_dimensions.return_value = [(Dimension("TableName", "orders"),)]
        cache = CachingDimensionResolver(delegate, default_ttl=60, clock=clock)
        rule = make_rule()

        for i in range(1000):
            clock.now += 120
            cache.get_dimensions(rule, [f"table-{i}"])

        assert len(cache._entries) == 1
        assert delegate.get_dimensions.call_count == 1000

    def test_previous_resource_ids_are_not_served_from_cache(self, delegate, clock):
        cache = CachingDimensionResolver(delegate, default_ttl=60, clock=clock)
        rule = make_rule()

        cache.get_dimensions(rule, ["a"])
        cache.get_dimensions(rule, ["b"])
        latest = cache.get_dimensions(rule, ["a"])

        assert latest == [(Dimension("Stage", "dev"),)]
        assert delegate.get_dimensions.call_count == 3

    def test_concurrent_refreshes_replace_the_entry_whole(self, clock):
        prod = [(Dimension("Stage", "prod"),)]
        prod_and_dev = [(Dimension("Stage", "prod"),), (Dimension("Stage", "dev"),)]
        answers = iter([prod, prod_and_dev])
        answers_lock = threading.Lock()
        both_refreshing = threading.Barrier(2, timeout=5)

        class SlowResolver(DimensionResolver):
            def get_dimensions(self, rule, tag_based_resource_ids):
                with answers_lock:
                    dimension_sets = next(answers)
                both_refreshing.wait()
                return dimension_sets

        cache = CachingDimensionResolver(SlowResolver(), default_ttl=60, clock=clock)
        rule = make_rule()

        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [pool.submit(cache.get_dimensions, rule, []) for _ in range(2)]
            results = sorted((future.result() for future in futures), key=len)

        assert results == [prod, prod_and_dev]
        assert cache.get_dimensions(rule, []) in results

    def test_callers_cannot_mutate_cached_entry(self, delegate, clock):
        cache = CachingDimensionResolver(delegate, default_ttl=60, clock=clock)
        rule = make_rule()

        cache.get_dimensions(rule, []).clear()

        assert cache.get_dimensions(rule, []) == [(Dimension("Stage", "prod"),)]

    def test_create_only_wraps_when_caching_enabled(self, delegate):
        assert CachingDimensionResolver.create(delegate, 0, [make_rule()]) is delegate
        assert isinstance(
            CachingDimensionResolver.create(delegate, 0, [make_rule(cache_ttl=30)]),
            CachingDimensionResolver,
        )
        assert isinstance(
            CachingDimensionResolver.create(delegate, 60, [make_rule()]),
            CachingDimensionResolver,
        )
