import logging
import time
from typing import Dict, List, Optional, Set

from prometheus_client import REGISTRY, CollectorRegistry
from prometheus_client.core import GaugeMetricFamily, Metric
from prometheus_client.samples import Sample

from .cloudwatch import (
    DataGetter,
    GetMetricDataDataGetter,
    GetMetricStatisticsDataGetter,
    safe_label_name,
    safe_name,
    to_snake_case,
)
from .config import Config, ConfigSource, FallbackConfigSource
from .core.constants import (
    BROKEN_DYNAMO_INDEX_DIMENSION,
    BROKEN_DYNAMO_METRICS,
    BROKEN_DYNAMO_NAMESPACE,
    RESOURCE_INFO_HELP,
    RESOURCE_INFO_METRIC,
    SCRAPE_DURATION_METRIC,
    SCRAPE_ERROR_METRIC,
)
from .dimensions import ResourceTagMapping, ResourceTagScanner, extract_resource_ids
from .rules import DimensionSet, MetricRule, Statistic

logger = logging.getLogger(__name__)


def base_metric_name(rule: MetricRule) -> str:
    base_name = safe_name(f"{rule.namespace.lower()}_{to_snake_case(rule.metric_name)}")
    # DynamoDB reports these under the same name for tables and their indexes
    if (
        rule.namespace == BROKEN_DYNAMO_NAMESPACE
        and BROKEN_DYNAMO_INDEX_DIMENSION in rule.dimensions
        and rule.metric_name in BROKEN_DYNAMO_METRICS
    ):
        base_name += "_index"
    return base_name


def job_name(rule: MetricRule) -> str:
    return safe_name(rule.namespace.lower())


def help_text(rule: MetricRule, unit: Optional[str], statistic: str) -> str:
    if rule.help is not None:
        return rule.help
    return (
        f"CloudWatch metric {rule.namespace} {rule.metric_name} "
        f"Dimensions: [{', '.join(rule.dimensions)}] "
        f"Statistic: {statistic} Unit: {unit}"
    )


def gauge_family(name: str, documentation: str, samples: List[Sample]) -> Metric:
    family = Metric(name, documentation, "gauge")
    family.samples.extend(samples)
    return family


class CloudWatchCollector:
    """Scrapes CloudWatch for every configured rule on each collect() call.

    Can be registered on a prometheus_client CollectorRegistry. A scrape never
    raises: failures are reported through the cloudwatch_exporter_scrape_error
    gauge and whatever rules completed before the failure are still returned.
    """

    def __init__(self, config_source: ConfigSource):
        if not isinstance(config_source, FallbackConfigSource):
            config_source = FallbackConfigSource(config_source)
        self._config_source = config_source
        self._config: Config = config_source.get_config()

    @property
    def config(self) -> Config:
        return self._config

    def register(self, registry: CollectorRegistry = REGISTRY) -> "CloudWatchCollector":
        registry.register(self)
        return self

    def describe(self) -> List[Metric]:
        return []

    def reload_config(self) -> None:
        logger.info("Reloading configuration")
        self._config = self._config_source.get_config()

    def collect(self) -> List[Metric]:
        start = time.perf_counter()
        error = 0.0
        families: List[Metric] = []
        try:
            self.scrape(families, self._config)
        except Exception:
            error = 1.0
            logger.warning("CloudWatch scrape failed", exc_info=True)

        families.append(
            GaugeMetricFamily(
                SCRAPE_DURATION_METRIC,
                "Time this CloudWatch scrape took, in seconds.",
                value=time.perf_counter() - start,
            )
        )
        families.append(
            GaugeMetricFamily(
                SCRAPE_ERROR_METRIC, "Non-zero if this scrape failed.", value=error
            )
        )
        return families

    def scrape(self, families: List[Metric], config: Config) -> None:
        """Append the families of every rule, in order, to families."""
        start = time.time()
        published_resource_info: Set[str] = set()
        info_samples: List[Sample] = []
        tag_scanner = ResourceTagScanner(config.clients.tagging, config.observer)

        for rule in config.rules:
            resource_tag_mappings = tag_scanner.get_resource_tag_mappings(rule)
            dimension_sets = config.dimension_resolver.get_dimensions(
                rule, extract_resource_ids(resource_tag_mappings)
            )
            data_getter = self._data_getter(config, rule, start, dimension_sets)
            families.extend(self._rule_families(rule, dimension_sets, data_getter))

            for mapping in resource_tag_mappings:
                if mapping.resource_arn in published_resource_info:
                    continue
                info_samples.append(self._resource_info_sample(rule, mapping))
                published_resource_info.add(mapping.resource_arn)

        families.append(gauge_family(RESOURCE_INFO_METRIC, RESOURCE_INFO_HELP, info_samples))

    @staticmethod
    def _data_getter(
        config: Config, rule: MetricRule, start: float, dimension_sets: List[DimensionSet]
    ) -> DataGetter:
        getter_class = (
            GetMetricDataDataGetter
            if rule.use_bulk_fetch
            else GetMetricStatisticsDataGetter
        )
        return getter_class(
            config.clients.cloudwatch, start, rule, dimension_sets, config.observer
        )

    def _rule_families(
        self,
        rule: MetricRule,
        dimension_sets: List[DimensionSet],
        data_getter: DataGetter,
    ) -> List[Metric]:
        base_name = base_metric_name(rule)
        job = job_name(rule)
        base_samples: Dict[Statistic, List[Sample]] = {s: [] for s in Statistic}
        extended_samples: Dict[str, List[Sample]] = {}
        unit = None

        for dimensions in dimension_sets:
            data = data_getter.metric_rule_data_for(dimensions)
            if data is None:
                continue
            unit = data.unit
            labels = self._labels(job, dimensions)
            timestamp = data.timestamp.timestamp() if rule.use_source_timestamp else None

            for statistic, value in data.statistic_values.items():
                base_samples[statistic].append(
                    Sample(base_name + statistic.suffix, labels, value, timestamp)
                )
            for name, value in data.extended_values.items():
                extended_samples.setdefault(name, []).append(
                    Sample(
                        f"{base_name}_{safe_name(to_snake_case(name))}",
                        labels,
                        value,
                        timestamp,
                    )
                )

        families = []
        for statistic in Statistic:
            if base_samples[statistic]:
                families.append(
                    gauge_family(
                        base_name + statistic.suffix,
                        help_text(rule, unit, statistic.value),
                        base_samples[statistic],
                    )
                )
        for name, samples in extended_samples.items():
            families.append(
                gauge_family(
                    f"{base_name}_{safe_name(to_snake_case(name))}",
                    help_text(rule, unit, name),
                    samples,
                )
            )
        return families

    @staticmethod
    def _labels(job: str, dimensions: DimensionSet) -> Dict[str, str]:
        labels = {"job": job, "instance": ""}
        for dimension in dimensions:
            # First value wins when two names collapse to the same label
            labels.setdefault(
                safe_label_name(to_snake_case(dimension.name)), dimension.value
            )
        return labels

    @staticmethod
    def _resource_info_sample(rule: MetricRule, mapping: ResourceTagMapping) -> Sample:
        labels = {
            "job": job_name(rule),
            "instance": "",
            "arn": mapping.resource_arn,
        }
        id_label = safe_label_name(to_snake_case(rule.tag_select.resource_id_dimension))
        labels.setdefault(id_label, mapping.resource_id)
        for key, value in mapping.tags.items():
            # AWS tags are case sensitive, so keys are prefixed but not snake cased
            labels.setdefault(f"tag_{safe_label_name(key)}", value)
        return Sample(RESOURCE_INFO_METRIC, labels, 1.0)
