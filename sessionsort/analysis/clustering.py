"""Pure functions for density-based clustering (DBSCAN).

Works on any point type through a pluggable metric. Two points are
neighbours when their distance is at most ``epsilon``; a point is a core
point when it has at least ``min_points`` neighbours, itself included.
Clusters are the core points connected through their neighbourhoods plus
the border points they reach. Everything else is noise.
"""

import math
from bisect import bisect_left, bisect_right
from collections import deque
from typing import Callable, Deque, List, Optional, Sequence, Tuple, TypeVar

from .metric import Metric

T = TypeVar("T")

NOISE = -1

Neighbourhood = Callable[[int], List[int]]


def pairwise_neighbours(
    points: Sequence[T], epsilon: float, metric: Metric[T]
) -> Neighbourhood:
    """Build a neighbourhood query comparing a point against every other.

    O(n) per query, O(n^2) overall. Works with any metric.
    """

    def query(i: int) -> List[int]:
        return [
            j
            for j in range(len(points))
            if metric.distance(points[i], points[j]) <= epsilon
        ]

    return query


def sweep_neighbours(
    points: Sequence[T],
    epsilon: float,
    position: Callable[[T], float],
    metric: Metric[T],
) -> Neighbourhood:
    """Build a neighbourhood query over a single sorted axis.

    Requires ``distance(a, b) == abs(position(a) - position(b))`` up to float
    rounding. Each query binary-searches a window slightly wider than
    ``[p - epsilon, p + epsilon]`` and keeps the candidates the metric puts
    within epsilon, so the result matches ``pairwise_neighbours`` exactly.
    """
    positions = [position(p) for p in points]
    order = sorted(range(len(points)), key=lambda i: positions[i])
    sorted_positions = [positions[i] for i in order]
    magnitude = max(abs(sorted_positions[0]), abs(sorted_positions[-1]), epsilon, 1.0)
    slack = 8 * math.ulp(magnitude)

    def query(i: int) -> List[int]:
        lo = bisect_left(sorted_positions, positions[i] - epsilon - slack)
        hi = bisect_right(sorted_positions, positions[i] + epsilon + slack)
        return [
            j
            for j in order[lo:hi]
            if metric.distance(points[i], points[j]) <= epsilon
        ]

    return query


def density_cluster(
    points: Sequence[T],
    min_points: int,
    epsilon: float,
    metric: Metric[T],
    use_sweep: Optional[bool] = None,
) -> Tuple[List[List[T]], List[T]]:
    """Cluster points with DBSCAN.

    Points are visited in the order given, so callers that need
    reproducible border assignment should pass them sorted.

    Args:
        points: Points to cluster
        min_points: Minimum neighbourhood size (self included) of a core point
        epsilon: Maximum distance between neighbours
        metric: Distance metric; if it has ``position`` the sweep is used
        use_sweep: Force (True) or disable (False) the sorted sweep

    Returns:
        Tuple of (clusters in discovery order, noise points). Members of a
        cluster are in discovery order, not sorted.

    Raises:
        ValueError: If min_points < 1 or epsilon < 0
    """
    if min_points < 1:
        raise ValueError(f"min_points must be at least 1, got {min_points}")
    if epsilon < 0:
        raise ValueError(f"epsilon must not be negative, got {epsilon}")

    if not points:
        return [], []

    position = getattr(metric, "position", None)
    if use_sweep is None:
        use_sweep = position is not None
    if use_sweep:
        if position is None:
            raise ValueError("Sorted sweep requires a metric with position()")
        neighbours = sweep_neighbours(points, epsilon, position, metric)
    else:
        neighbours = pairwise_neighbours(points, epsilon, metric)

    labels: List[Optional[int]] = [None] * len(points)
    clusters: List[List[int]] = []

    for i in range(len(points)):
        if labels[i] is not None:
            continue

        seeds = neighbours(i)
        if len(seeds) < min_points:
            labels[i] = NOISE
            continue

        cluster_id = len(clusters)
        members = [i]
        labels[i] = cluster_id

        queue: Deque[int] = deque(seeds)
        while queue:
            j = queue.popleft()
            if labels[j] == NOISE:
                # Border point: reachable, but not core
                labels[j] = cluster_id
                members.append(j)
                continue
            if labels[j] is not None:
                continue

            labels[j] = cluster_id
            members.append(j)

            reach = neighbours(j)
            if len(reach) >= min_points:
                queue.extend(reach)

        clusters.append(members)

    noise = [points[i] for i, label in enumerate(labels) if label == NOISE]
    return [[points[i] for i in members] for members in clusters], noise
