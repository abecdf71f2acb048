import re

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_INVALID_METRIC_CHARS = re.compile(r"[^a-zA-Z0-9:_]")
_INVALID_LABEL_CHARS = re.compile(r"[^a-zA-Z0-9_]")
_UNDERSCORE_RUNS = re.compile(r"__+")


def to_snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"\1_\2", name).lower()


def safe_name(name: str) -> str:
    """Change invalid metric name chars to underscore and merge underscores."""
    return _UNDERSCORE_RUNS.sub("_", _INVALID_METRIC_CHARS.sub("_", name))


def safe_label_name(name: str) -> str:
    """Change invalid label name chars to underscore and merge underscores."""
    return _UNDERSCORE_RUNS.sub("_", _INVALID_LABEL_CHARS.sub("_", name))
