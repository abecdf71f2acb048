import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, Any, Dict, Optional, Union

import yaml

from ..core.exceptions import ConfigError
from ..core.session import AwsClients
from ..observers import RequestObserver
from .loader import Config, load_config

logger = logging.getLogger(__name__)


def parse_yaml(stream: Union[str, IO]) -> Dict[str, Any]:
    try:
        return yaml.safe_load(stream)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML configuration: {e}") from e


def load_yaml(file_path: Union[str, Path]) -> Dict[str, Any]:
    with open(file_path, "r") as file:
        return parse_yaml(file)


class ConfigSource(ABC):
    @abstractmethod
    def get_config(self) -> Config:
        pass


class YamlConfigSource(ConfigSource):
    """Builds a Config from an already parsed YAML document."""

    def __init__(
        self,
        data: Dict[str, Any],
        clients: Optional[AwsClients] = None,
        observer: Optional[RequestObserver] = None,
    ):
        self.data = data
        self.clients = clients
        self.observer = observer

    @classmethod
    def from_string(cls, yaml_body: str, **kwargs) -> "YamlConfigSource":
        return cls(parse_yaml(yaml_body), **kwargs)

    @classmethod
    def from_stream(cls, stream: IO, **kwargs) -> "YamlConfigSource":
        return cls(parse_yaml(stream), **kwargs)

    def get_config(self) -> Config:
        return load_config(self.data, self.clients, self.observer)


class YamlFileConfigSource(ConfigSource):
    """Re-reads the YAML file on every load so reloads pick up edits."""

    def __init__(
        self,
        file_path: Union[str, Path],
        clients: Optional[AwsClients] = None,
        observer: Optional[RequestObserver] = None,
    ):
        self.file_path = Path(file_path)
        self.clients = clients
        self.observer = observer

    def get_config(self) -> Config:
        return load_config(load_yaml(self.file_path), self.clients, self.observer)


class FallbackConfigSource(ConfigSource):
    """Keeps serving the last good Config when a reload fails.

    The very first load has nothing to fall back to and raises.
    """

    def __init__(self, config_source: ConfigSource):
        self.config_source = config_source
        self._config: Optional[Config] = None

    def get_config(self) -> Config:
        try:
            self._config = self.config_source.get_config()
        except Exception:
            if self._config is None:
                raise
            logger.warning("Unable to load config, using existing config", exc_info=True)
        return self._config


def build_config_source(
    yaml_body: Optional[str] = None,
    yaml_file: Optional[Union[str, Path]] = None,
    cloudwatch_client: Any = None,
    tagging_client: Any = None,
    observer: Optional[RequestObserver] = None,
    fallback_on_error: bool = True,
) -> ConfigSource:
    if (yaml_body is None) == (yaml_file is None):
        raise ValueError("Provide exactly one of yaml_body or yaml_file")

    clients = None
    if cloudwatch_client is not None or tagging_client is not None:
        clients = AwsClients(cloudwatch=cloudwatch_client, tagging=tagging_client)

    config_source: ConfigSource
    if yaml_file is not None:
        config_source = YamlFileConfigSource(yaml_file, clients, observer)
    else:
        config_source = YamlConfigSource.from_string(
            yaml_body, clients=clients, observer=observer
        )
    if fallback_on_error:
        config_source = FallbackConfigSource(config_source)
    return config_source
