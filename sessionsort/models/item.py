"""Item and group models - timestamped photos and the sessions they form."""

from datetime import datetime
from pathlib import Path
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Item(BaseModel):
    """A single timestamped photo file produced by traversal."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    path: Path

    @property
    def sort_key(self) -> Tuple[datetime, str]:
        """Total ordering key: timestamp first, path as tie break."""
        return (self.timestamp, str(self.path))


def sort_items(items: List[Item]) -> List[Item]:
    """Return items sorted ascending by timestamp (path breaks ties)."""
    return sorted(items, key=lambda item: item.sort_key)


class Group(BaseModel):
    """A session: a non-empty, time-ordered run of items.

    The earliest member is the representative and names the group.
    """

    model_config = ConfigDict(frozen=True)

    members: List[Item]

    @field_validator("members")
    @classmethod
    def _check_members(cls, members: List[Item]) -> List[Item]:
        if not members:
            raise ValueError("A group must contain at least one item")
        for prev, curr in zip(members, members[1:]):
            if curr.timestamp < prev.timestamp:
                raise ValueError(
                    f"Group members out of order: {curr.path} precedes {prev.path}"
                )
        return members

    @property
    def representative(self) -> Item:
        return self.members[0]

    @property
    def start_time(self) -> datetime:
        return self.members[0].timestamp

    @property
    def end_time(self) -> datetime:
        return self.members[-1].timestamp

    @property
    def duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    def __len__(self) -> int:
        return len(self.members)


class GroupingResult(BaseModel):
    """Output of a grouping policy."""

    policy: str
    groups: List[Group] = Field(default_factory=list)
    noise: List[Item] = Field(default_factory=list)

    @property
    def item_count(self) -> int:
        """Number of items placed in groups (noise excluded)."""
        return sum(len(g) for g in self.groups)


class ScanError(BaseModel):
    """A file or directory skipped during traversal."""

    path: Path
    error: str


class ScanResult(BaseModel):
    """Items discovered under a source directory plus skipped entries."""

    items: List[Item] = Field(default_factory=list)
    errors: List[ScanError] = Field(default_factory=list)
