"""Tests for grouping policies and the policy registry."""

from datetime import timedelta

import pytest

from sessionsort.analysis.policies import (
    REGISTRY,
    DensityPolicy,
    GapPolicy,
    GroupingPolicy,
    PolicyRegistry,
    build_policy,
)
from sessionsort.config import Settings


class TestGapPolicy:
    def test_groups_by_gap(self, items_factory):
        policy = GapPolicy(timedelta(hours=3))

        result = policy.group(items_factory(0, 30, 240, 250))

        assert result.policy == "gap"
        assert [len(g) for g in result.groups] == [2, 2]
        assert result.noise == []

    def test_single_item(self, items_factory):
        result = GapPolicy(timedelta(hours=3)).group(items_factory(0))

        assert len(result.groups) == 1
        assert len(result.groups[0]) == 1

    def test_empty(self):
        result = GapPolicy(timedelta(hours=3)).group([])

        assert result.groups == []

    def test_rejects_negative_gap(self):
        with pytest.raises(ValueError):
            GapPolicy(timedelta(seconds=-1))


class TestDensityPolicy:
    def test_clusters_sorted_by_earliest_member(self, items_factory):
        """Clusters come out chronologically whatever the input order."""
        items = items_factory(600, 601, 0, 2, 1, 602)

        result = DensityPolicy(min_points=2, epsilon=300.0).group(items)

        assert result.policy == "density"
        starts = [g.start_time for g in result.groups]
        assert starts == sorted(starts)
        assert [len(g) for g in result.groups] == [3, 3]

    def test_members_sorted_within_cluster(self, items_factory):
        items = items_factory(5, 3, 1, 4, 2)

        result = DensityPolicy(min_points=2, epsilon=120.0).group(items)

        assert len(result.groups) == 1
        stamps = [i.timestamp for i in result.groups[0].members]
        assert stamps == sorted(stamps)
        assert result.groups[0].representative.timestamp == min(stamps)

    def test_noise_is_reported(self, items_factory):
        items = items_factory(0, 1, 2, 500)

        result = DensityPolicy(min_points=2, epsilon=300.0).group(items)

        assert len(result.groups) == 1
        assert len(result.noise) == 1
        assert result.noise[0].path.name == "img_003.jpg"

    def test_single_item_min_points_one(self, items_factory):
        result = DensityPolicy(min_points=1, epsilon=60.0).group(items_factory(0))

        assert len(result.groups) == 1
        assert result.noise == []

    def test_single_item_min_points_two(self, items_factory):
        result = DensityPolicy(min_points=2, epsilon=60.0).group(items_factory(0))

        assert result.groups == []
        assert len(result.noise) == 1

    def test_naive_and_sweep_agree(self, items_factory):
        items = items_factory(0, 3, 7, 30, 31, 90, 95, 96, 97, 240)

        naive = DensityPolicy(2, 300.0, use_sweep=False).group(items)
        sweep = DensityPolicy(2, 300.0, use_sweep=True).group(items)

        assert naive.groups == sweep.groups
        assert naive.noise == sweep.noise

    def test_custom_metric(self, items_factory):
        """Any object with distance() plugs in."""

        class EverythingClose:
            def distance(self, a, b):
                return 0.0

        items = items_factory(0, 1000, 5000)

        result = DensityPolicy(2, 1.0, metric=EverythingClose()).group(items)

        assert len(result.groups) == 1
        assert len(result.groups[0]) == 3

    def test_rejects_bad_parameters(self):
        with pytest.raises(ValueError):
            DensityPolicy(min_points=0, epsilon=1.0)
        with pytest.raises(ValueError):
            DensityPolicy(min_points=2, epsilon=-1.0)


class TestRegistry:
    def test_builtin_policies_registered(self):
        assert set(REGISTRY.list_policies()) >= {"gap", "density"}

    def test_register_duplicate_rejected(self):
        registry = PolicyRegistry()
        registry.register("x", lambda **kw: GapPolicy(timedelta(0)))

        with pytest.raises(ValueError):
            registry.register("x", lambda **kw: GapPolicy(timedelta(0)))

    def test_create_unknown(self):
        with pytest.raises(KeyError):
            PolicyRegistry().create("nope")

    def test_register_custom_policy(self, items_factory):
        """New strategies plug in without touching callers."""

        class OneBigGroup(GroupingPolicy):
            name = "one"

            def group(self, items):
                return GapPolicy(timedelta(days=36500)).group(items)

        registry = PolicyRegistry()
        registry.register("one", lambda **kw: OneBigGroup())

        policy = registry.create("one", gap=timedelta(hours=1))
        result = policy.group(items_factory(0, 10000))

        assert len(result.groups) == 1


class TestBuildPolicy:
    def test_build_gap_policy(self):
        policy = build_policy(Settings(policy="gap", gap_hours=2.0))

        assert isinstance(policy, GapPolicy)
        assert policy.gap == timedelta(hours=2)

    def test_build_density_policy(self):
        policy = build_policy(
            Settings(policy="density", min_points=3, epsilon_hours=0.5)
        )

        assert isinstance(policy, DensityPolicy)
        assert policy.min_points == 3
        assert policy.epsilon == 1800.0
