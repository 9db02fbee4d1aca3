"""Pure functions for sequential-gap session grouping.

Splits a set of timestamped items into sessions: a new session starts
whenever the idle time since the previous photo exceeds the gap threshold.
No filesystem access or progress tracking happens here.
"""

from datetime import timedelta
from typing import List

from ..models.item import Group, Item, sort_items


def split_sessions(items: List[Item], gap: timedelta) -> List[Group]:
    """Group items into sessions separated by idle gaps.

    A new session starts at the first item and whenever
    ``previous.timestamp + gap < current.timestamp``. Two photos exactly
    ``gap`` apart stay in the same session.

    Args:
        items: Items in any order
        gap: Maximum idle time between consecutive photos of one session

    Returns:
        Sessions in chronological order, each sorted by timestamp

    Raises:
        ValueError: If gap is negative
    """
    if gap < timedelta(0):
        raise ValueError(f"Gap must not be negative, got {gap}")

    if not items:
        return []

    sorted_items = sort_items(items)

    sessions: List[Group] = []
    current: List[Item] = [sorted_items[0]]

    for i in range(1, len(sorted_items)):
        prev_item = sorted_items[i - 1]
        curr_item = sorted_items[i]

        if prev_item.timestamp + gap < curr_item.timestamp:
            sessions.append(Group(members=current))
            current = [curr_item]
        else:
            current.append(curr_item)

    sessions.append(Group(members=current))
    return sessions


def session_gaps(sessions: List[Group]) -> List[timedelta]:
    """Idle time between each pair of consecutive sessions."""
    return [
        curr.start_time - prev.end_time for prev, curr in zip(sessions, sessions[1:])
    ]
