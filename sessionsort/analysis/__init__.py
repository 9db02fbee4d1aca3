"""Pure grouping algorithms.

- sessionsort.analysis.sessions: split_sessions, session_gaps
- sessionsort.analysis.clustering: density_cluster
- sessionsort.analysis.policies: GapPolicy, DensityPolicy, build_policy
- sessionsort.analysis.naming: group_name, assign_group_names
"""

from typing import Any


def __getattr__(name: str) -> Any:
    """Lazy imports to avoid circular dependencies."""
    if name in ("split_sessions", "session_gaps"):
        from sessionsort.analysis import sessions

        return getattr(sessions, name)
    elif name == "density_cluster":
        from sessionsort.analysis import clustering

        return getattr(clustering, name)
    elif name in (
        "GapPolicy",
        "DensityPolicy",
        "GroupingPolicy",
        "REGISTRY",
        "build_policy",
    ):
        from sessionsort.analysis import policies

        return getattr(policies, name)
    elif name in ("group_name", "assign_group_names"):
        from sessionsort.analysis import naming

        return getattr(naming, name)
    elif name == "TimeMetric":
        from sessionsort.analysis import metric

        return getattr(metric, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
