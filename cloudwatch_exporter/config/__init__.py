from .loader import Config, load_config
from .source import (
    ConfigSource,
    FallbackConfigSource,
    YamlConfigSource,
    YamlFileConfigSource,
    build_config_source,
    load_yaml,
    parse_yaml,
)

__all__ = [
    "Config",
    "load_config",
    "ConfigSource",
    "FallbackConfigSource",
    "YamlConfigSource",
    "YamlFileConfigSource",
    "build_config_source",
    "load_yaml",
    "parse_yaml",
]
