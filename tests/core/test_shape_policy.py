"""形状ポリシー（プール / 軸独立）とレジストリのテスト。"""

from __future__ import annotations

from collections import Counter

import pytest

from blockgrid.core.errors import InvalidArgument
from blockgrid.core.placement import Dims
from blockgrid.core.random_source import NumpyRandomSource
from blockgrid.core.shape_policy import (
    UNIT,
    IndependentAxisPolicy,
    PoolPolicy,
    ShapePolicy,
    resolve_shape_policy,
    shape_policy_registry,
)


def test_pool_policy_draws_only_pool_members() -> None:
    policy = PoolPolicy([(5, 1), (1, 6), (2, 3)])
    rng = NumpyRandomSource(1)
    drawn = {policy.draw(rng) for _ in range(200)}
    assert drawn == {Dims(5, 1), Dims(1, 6), Dims(2, 3)}


def test_independent_axis_covers_all_combinations() -> None:
    policy = IndependentAxisPolicy([2, 5], [1, 2, 3])
    rng = NumpyRandomSource(2)
    drawn = {policy.draw(rng) for _ in range(500)}
    assert drawn == set(policy.candidates())
    assert len(policy.candidates()) == 6


def test_independent_axis_distribution_differs_from_pool() -> None:
    """軸独立で幅候補に重複があると、組み合わせ確率が一様にならない。"""
    policy = IndependentAxisPolicy([1, 1, 2], [1])
    rng = NumpyRandomSource(3)
    counts = Counter(policy.draw(rng) for _ in range(3000))
    assert counts[Dims(1, 1)] > counts[Dims(2, 1)]
    assert policy.candidates() == (Dims(1, 1), Dims(2, 1))


def test_unit_policy_is_unit() -> None:
    assert UNIT.is_unit
    assert UNIT.candidates() == (Dims(1, 1),)
    assert not PoolPolicy([(1, 1), (2, 1)]).is_unit
    assert IndependentAxisPolicy([1], [1]).is_unit


@pytest.mark.parametrize(
    "factory",
    [
        lambda: PoolPolicy([]),
        lambda: PoolPolicy([(0, 1)]),
        lambda: PoolPolicy([(1, -2)]),
        lambda: PoolPolicy([(1.5, 1)]),
        lambda: PoolPolicy([(1, 2, 3)]),
        lambda: IndependentAxisPolicy([], [1]),
        lambda: IndependentAxisPolicy([1], [0]),
        lambda: IndependentAxisPolicy([1, 2.0], [1]),
    ],
)
def test_invalid_policies_raise(factory) -> None:
    with pytest.raises(InvalidArgument):
        factory()


def test_builtin_presets_are_registered() -> None:
    for name in ("small", "mixed", "pool", "unit"):
        assert name in shape_policy_registry
        assert isinstance(shape_policy_registry.get(name), ShapePolicy)

    mixed = shape_policy_registry.get("mixed")
    assert isinstance(mixed, IndependentAxisPolicy)
    assert mixed.widths == (2, 5)
    assert mixed.heights == (1, 2, 3)

    pool = shape_policy_registry.get("pool")
    assert isinstance(pool, PoolPolicy)
    assert pool.shapes == (Dims(5, 1), Dims(1, 6), Dims(2, 3), Dims(4, 4), Dims(7, 7))


def test_resolve_shape_policy() -> None:
    assert resolve_shape_policy("unit") is UNIT
    custom = PoolPolicy([(2, 2)], name="square")
    assert resolve_shape_policy(custom) is custom
    with pytest.raises(InvalidArgument):
        resolve_shape_policy("missing")
    with pytest.raises(InvalidArgument):
        resolve_shape_policy(3)  # type: ignore[arg-type]
