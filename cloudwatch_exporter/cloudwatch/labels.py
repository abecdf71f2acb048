"""Correlation labels for GetMetricData queries.

GetMetricData returns results in no guaranteed order, tagged only with the
label of the query that produced them. Each query is labelled
"<stat>/<dimensions key>" so results can be routed back to their statistic
and dimension set.
"""

from typing import Iterable, List, NamedTuple, Sequence, TypeVar

from ..core.exceptions import ProtocolError
from ..rules import Dimension

T = TypeVar("T")

LABEL_SEPARATOR = "/"


class StatAndDimensions(NamedTuple):
    stat: str
    dimensions_key: str


def dimension_to_string(dimension: Dimension) -> str:
    return f"{dimension.name}={dimension.value}"


def dimensions_to_key(dimensions: Iterable[Dimension]) -> str:
    return ",".join(sorted(dimension_to_string(d) for d in dimensions))


def label_for(stat: str, dimensions: Iterable[Dimension]) -> str:
    return f"{stat}{LABEL_SEPARATOR}{dimensions_to_key(dimensions)}"


def decode_label(label: str) -> StatAndDimensions:
    stat, separator, dimensions_key = label.partition(LABEL_SEPARATOR)
    if not separator:
        raise ProtocolError(label)
    return StatAndDimensions(stat, dimensions_key)


def partition_by_max_size(items: Sequence[T], max_size: int) -> List[List[T]]:
    """Split items into consecutive batches of at most max_size."""
    if max_size <= 0:
        raise ValueError(f"max_size must be positive, got {max_size}")
    return [list(items[i : i + max_size]) for i in range(0, len(items), max_size)]
