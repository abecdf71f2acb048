import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..core.exceptions import ConfigError
from ..core.session import AwsClients, build_clients
from ..dimensions import (
    CachingDimensionResolver,
    DefaultDimensionResolver,
    DimensionResolver,
)
from ..observers import NullRequestObserver, RequestObserver
from ..rules import MetricRule, RuleDefaults

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Config:
    """Immutable snapshot of the rules and the clients used to collect them."""

    rules: Tuple[MetricRule, ...]
    clients: AwsClients
    dimension_resolver: DimensionResolver
    observer: RequestObserver


def load_config(
    data: Dict[str, Any],
    clients: Optional[AwsClients] = None,
    observer: Optional[RequestObserver] = None,
) -> Config:
    """Build a Config from a parsed YAML mapping."""
    observer = observer or NullRequestObserver()
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")
    if "metrics" not in data:
        raise ConfigError("Must provide metrics")

    defaults = RuleDefaults.from_dict(data)
    rules = tuple(
        MetricRule.from_dict(rule, defaults) for rule in data["metrics"] or []
    )

    clients = build_clients(
        region=data.get("region"),
        role_arn=data.get("role_arn"),
        cloudwatch_client=clients.cloudwatch if clients else None,
        tagging_client=clients.tagging if clients else None,
    )

    dimension_resolver = CachingDimensionResolver.create(
        DefaultDimensionResolver(clients.cloudwatch, observer),
        defaults.cache_ttl,
        rules,
    )
    logger.info(f"Loaded configuration with {len(rules)} metric rules")
    return Config(
        rules=rules,
        clients=clients,
        dimension_resolver=dimension_resolver,
        observer=observer,
    )
