"""Distance metrics used by the grouping algorithms.

A metric only has to provide ``distance(a, b)``. Metrics over a single
monotonic axis may also provide ``position(a)``; the clustering code then
switches to a sorted sweep instead of comparing every pair.
"""

from datetime import datetime, timezone
from typing import Protocol, TypeVar

from ..models.item import Item

T = TypeVar("T")
T_contra = TypeVar("T_contra", contravariant=True)

_NAIVE_EPOCH = datetime(1970, 1, 1)
_AWARE_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class Metric(Protocol[T_contra]):
    """Anything that can measure the distance between two points."""

    def distance(self, a: T_contra, b: T_contra) -> float: ...


class TimeMetric:
    """Absolute time difference between two items, in seconds."""

    def distance(self, a: Item, b: Item) -> float:
        return abs((a.timestamp - b.timestamp).total_seconds())

    def position(self, a: Item) -> float:
        """Seconds since an epoch of the same awareness as the timestamp.

        Satisfies ``distance(a, b) == abs(position(a) - position(b))``.
        Naive timestamps are measured against a naive epoch so wall-clock
        differences are preserved across DST changes.
        """
        epoch = _NAIVE_EPOCH if a.timestamp.tzinfo is None else _AWARE_EPOCH
        return (a.timestamp - epoch).total_seconds()
