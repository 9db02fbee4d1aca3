"""
Grouping policies.

A grouping policy turns an unordered collection of items into an ordered
list of groups. Policies share one interface so callers never switch on the
algorithm; new strategies register themselves under a name and are built
from configuration through the registry.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from ..models.item import Group, GroupingResult, Item, sort_items
from .clustering import density_cluster
from .metric import Metric, TimeMetric
from .sessions import split_sessions

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)


class GroupingPolicy(ABC):
    """Strategy interface: items in, ordered groups out."""

    name: str = ""

    @abstractmethod
    def group(self, items: List[Item]) -> GroupingResult:
        """Partition items into groups.

        Args:
            items: Items in any order

        Returns:
            GroupingResult with groups in chronological order
        """


class GapPolicy(GroupingPolicy):
    """Sequential-gap grouping: a new group after every idle gap."""

    name = "gap"

    def __init__(self, gap: timedelta) -> None:
        if gap < timedelta(0):
            raise ValueError(f"Gap must not be negative, got {gap}")
        self.gap = gap

    def group(self, items: List[Item]) -> GroupingResult:
        groups = split_sessions(items, self.gap)
        logger.info(
            f"Gap grouping ({self.gap}) formed {len(groups)} sessions "
            f"from {len(items)} items"
        )
        return GroupingResult(policy=self.name, groups=groups)

    def __repr__(self) -> str:
        return f"GapPolicy(gap={self.gap!r})"


class DensityPolicy(GroupingPolicy):
    """Density clustering over a distance metric (time by default).

    Clusters are re-sorted internally and emitted by earliest member, so the
    output is chronological like the gap policy. Items reachable from no
    core point are returned as noise.
    """

    name = "density"

    def __init__(
        self,
        min_points: int,
        epsilon: float,
        metric: Optional[Metric[Item]] = None,
        use_sweep: Optional[bool] = None,
    ) -> None:
        if min_points < 1:
            raise ValueError(f"min_points must be at least 1, got {min_points}")
        if epsilon < 0:
            raise ValueError(f"epsilon must not be negative, got {epsilon}")
        self.min_points = min_points
        self.epsilon = epsilon
        self.metric: Metric[Item] = metric or TimeMetric()
        self.use_sweep = use_sweep

    def group(self, items: List[Item]) -> GroupingResult:
        # Visit in time order so border assignment is reproducible
        points = sort_items(items)
        clusters, noise = density_cluster(
            points,
            self.min_points,
            self.epsilon,
            self.metric,
            use_sweep=self.use_sweep,
        )

        groups = [Group(members=sort_items(cluster)) for cluster in clusters]
        groups.sort(key=lambda g: g.representative.sort_key)

        logger.info(
            f"Density clustering (min_points={self.min_points}, "
            f"epsilon={self.epsilon}s) formed {len(groups)} clusters, "
            f"{len(noise)} noise items"
        )
        return GroupingResult(policy=self.name, groups=groups, noise=noise)

    def __repr__(self) -> str:
        return (
            f"DensityPolicy(min_points={self.min_points}, epsilon={self.epsilon})"
        )


PolicyFactory = Callable[..., GroupingPolicy]


class PolicyRegistry:
    """
    Registry for grouping policy factories.

    Maps configuration names to factories so a policy can be chosen at
    runtime without the caller knowing the concrete class.
    """

    def __init__(self) -> None:
        self._factories: Dict[str, PolicyFactory] = {}

    def register(self, name: str, factory: PolicyFactory) -> None:
        """
        Register a policy factory.

        Raises:
            ValueError: If a policy with the same name is already registered
        """
        if name in self._factories:
            raise ValueError(f"Policy '{name}' is already registered")
        self._factories[name] = factory

    def get(self, name: str) -> Optional[PolicyFactory]:
        return self._factories.get(name)

    def create(self, name: str, **params: Any) -> GroupingPolicy:
        """
        Build a policy by name.

        Raises:
            KeyError: If no policy is registered under the name
        """
        factory = self._factories.get(name)
        if factory is None:
            raise KeyError(
                f"Unknown grouping policy '{name}', "
                f"expected one of {self.list_policies()}"
            )
        return factory(**params)

    def list_policies(self) -> List[str]:
        return list(self._factories.keys())


# Global registry instance
REGISTRY = PolicyRegistry()


def _gap_factory(gap: timedelta, **_: Any) -> GroupingPolicy:
    return GapPolicy(gap)


def _density_factory(min_points: int, epsilon: float, **_: Any) -> GroupingPolicy:
    return DensityPolicy(min_points=min_points, epsilon=epsilon)


REGISTRY.register(GapPolicy.name, _gap_factory)
REGISTRY.register(DensityPolicy.name, _density_factory)


def build_policy(settings: Settings) -> GroupingPolicy:
    """Build the configured policy from a Settings object."""
    return REGISTRY.create(
        settings.policy,
        gap=settings.gap,
        min_points=settings.min_points,
        epsilon=settings.epsilon_seconds,
    )
