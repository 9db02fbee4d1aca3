"""Deterministic, filesystem-safe names for groups."""

from collections import Counter
from datetime import datetime
from typing import Counter as CounterType
from typing import List

from ..models.item import Group

NAME_FORMAT = "%Y-%m-%d-%H-%M-%S"


def format_timestamp(timestamp: datetime) -> str:
    """Format a timestamp as a fixed-width, lexically sortable name."""
    return timestamp.strftime(NAME_FORMAT)


def group_name(group: Group) -> str:
    """Name a group after its representative (earliest) item."""
    return format_timestamp(group.representative.timestamp)


def assign_group_names(groups: List[Group]) -> List[str]:
    """Name every group, disambiguating groups that share a start second.

    The first group with a given name keeps it; later ones get ``-2``,
    ``-3``, ... appended. Suffixed names are longer than any base name, so
    they cannot collide with another group's base name.

    Args:
        groups: Groups in output order

    Returns:
        One unique name per group, in the same order
    """
    seen: CounterType[str] = Counter()
    names: List[str] = []
    for group in groups:
        base = group_name(group)
        seen[base] += 1
        names.append(base if seen[base] == 1 else f"{base}-{seen[base]}")
    return names
