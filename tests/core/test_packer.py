"""pack_grid / attempt_placement のパッキング規則に関するテスト群。"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from itertools import combinations

import numpy as np
import pytest

from blockgrid.core.errors import InvalidArgument
from blockgrid.core.occupancy import coverage_report
from blockgrid.core.packer import (
    Rejection,
    attempt_placement,
    ends_with_unit_fill,
    enumerate_cells,
    pack_grid,
    with_unit_fill,
)
from blockgrid.core.placement import Dims, Placement, Pos
from blockgrid.core.random_source import NumpyRandomSource
from blockgrid.core.shape_policy import UNIT, IndependentAxisPolicy, PoolPolicy, ShapePolicy


class _ScriptedRandom:
    """choice で予め決めた値を順に返す RandomSource。"""

    def __init__(self, picks: Sequence[object]) -> None:
        self._picks = list(picks)

    def uniform(self, low: float = 0.0, high: float = 1.0) -> float:
        return low

    def choice(self, items):
        if not self._picks:
            return items[0]
        pick = self._picks.pop(0)
        assert pick in items
        return pick


def _cells(p: Placement) -> set[tuple[int, int]]:
    return {(c.x, c.y) for c in p.cells()}


def _assert_no_overlap(placements: list[Placement]) -> None:
    for a, b in combinations(placements, 2):
        assert not (_cells(a) & _cells(b)), (a, b)


def test_enumerate_cells_is_row_major() -> None:
    """y 外側・x 内側の順で列挙する。"""
    cells = enumerate_cells(2, 3)
    assert [(c.x, c.y) for c in cells] == [
        (0, 0),
        (1, 0),
        (2, 0),
        (0, 1),
        (1, 1),
        (2, 1),
    ]


def test_empty_grid_returns_no_placements() -> None:
    assert pack_grid(0, 0, ["mixed", "unit"]) == []
    assert pack_grid(0, 5, [UNIT]) == []
    assert pack_grid(5, 0, [UNIT]) == []


def test_single_cell_with_unit_pass() -> None:
    """1x1 グリッド + unit パスは (0,0) の 1x1 を 1 つだけ返す。"""
    placements = pack_grid(1, 1, [UNIT], rng=NumpyRandomSource(0))
    assert placements == [Placement(Pos(0, 0), Dims(1, 1))]


def test_empty_pass_list_returns_no_placements() -> None:
    assert pack_grid(3, 3, []) == []


@pytest.mark.parametrize("rows,cols", [(1, 1), (1, 7), (5, 1), (4, 6), (20, 20)])
@pytest.mark.parametrize("seed", range(5))
@pytest.mark.parametrize("coarse", ["small", "mixed", "pool"])
def test_unit_fill_gives_exact_coverage(rows: int, cols: int, seed: int, coarse: str) -> None:
    """最終パスが unit なら全セルがちょうど 1 つの配置に覆われる。"""
    placements = pack_grid(rows, cols, [coarse, "unit"], rng=NumpyRandomSource(seed))

    report = coverage_report(rows, cols, placements)
    assert report.is_exact
    assert report.covered_cells == rows * cols
    _assert_no_overlap(placements)


@pytest.mark.parametrize("seed", range(10))
def test_no_overlap_including_overflow(seed: int) -> None:
    """グリッド外へはみ出した部分も含めて足跡は互いに素。"""
    placements = pack_grid(6, 6, ["pool", "mixed", "unit"], rng=NumpyRandomSource(seed))
    _assert_no_overlap(placements)


def test_partial_coverage_without_unit_fill() -> None:
    """unit パスが無いと、空きセルでも形状が衝突して未被覆のまま残り得る。"""
    policy = PoolPolicy([(2, 1), (1, 2), (3, 1)])
    picks = [
        Dims(2, 1),  # (0,0) -> (0,0),(1,0)
        Dims(1, 2),  # (1,0) 既に被覆 -> 棄却
        Dims(1, 2),  # (2,0) -> (2,0),(2,1)
        Dims(3, 1),  # (0,1) (2,1) と衝突 -> 棄却
        Dims(3, 1),  # (1,1) (2,1) と衝突 -> 棄却
        Dims(2, 1),  # (2,1) 既に被覆 -> 棄却
    ]
    rejections: list[Rejection] = []
    placements = pack_grid(2, 3, [policy], rng=_ScriptedRandom(picks), rejections=rejections)

    assert placements == [
        Placement(Pos(0, 0), Dims(2, 1)),
        Placement(Pos(2, 0), Dims(1, 2)),
    ]
    report = coverage_report(2, 3, placements)
    assert report.uncovered == (Pos(0, 1), Pos(1, 1))
    assert not report.overlapping
    assert len(placements) <= 2 * 3

    assert [r.pos for r in rejections] == [Pos(1, 0), Pos(0, 1), Pos(1, 1), Pos(2, 1)]
    assert rejections[1].blocker == Placement(Pos(2, 0), Dims(1, 2))


def test_footprint_overflow_is_accepted() -> None:
    """cols=5 で (3,0) に幅 3 を置くとグリッド外まで伸びるが、衝突が無いので受理される。"""
    placements = pack_grid(1, 5, [PoolPolicy([(3, 1)])], rng=NumpyRandomSource(0))

    assert placements == [
        Placement(Pos(0, 0), Dims(3, 1)),
        Placement(Pos(3, 0), Dims(3, 1)),
    ]
    assert max(c.x for c in placements[1].cells()) == 5


def test_same_seed_gives_identical_sequence() -> None:
    a = pack_grid(12, 9, ["pool", "unit"], rng=NumpyRandomSource(42))
    b = pack_grid(12, 9, ["pool", "unit"], rng=NumpyRandomSource(42))
    assert a == b


def test_different_seeds_usually_differ() -> None:
    results = {
        tuple(pack_grid(10, 10, ["mixed", "unit"], rng=NumpyRandomSource(s)))
        for s in range(5)
    }
    assert len(results) > 1


def test_placements_follow_scan_order() -> None:
    """1 パス内の配置はアンカーの行優先順に並ぶ。"""
    placements = pack_grid(8, 8, ["small"], rng=NumpyRandomSource(3))
    anchors = [(p.pos.y, p.pos.x) for p in placements]
    assert anchors == sorted(anchors)


def test_attempt_placement_appends_on_accept() -> None:
    placements: list[Placement] = []
    result = attempt_placement(Pos(1, 2), PoolPolicy([(2, 2)]), placements, rng=NumpyRandomSource(0))
    assert result == Placement(Pos(1, 2), Dims(2, 2))
    assert placements == [result]


def test_attempt_placement_rejects_without_mutation() -> None:
    existing = Placement(Pos(2, 0), Dims(1, 1))
    placements = [existing]
    result = attempt_placement(Pos(0, 0), PoolPolicy([(3, 1)]), placements, rng=NumpyRandomSource(0))

    assert result == Rejection(pos=Pos(0, 0), dims=Dims(3, 1), blocker=existing)
    assert placements == [existing]


def test_attempt_placement_edge_cell_is_not_covered() -> None:
    """半開区間: 既存配置の右端ちょうどのセルには置ける。"""
    placements = [Placement(Pos(0, 0), Dims(2, 2))]
    result = attempt_placement(Pos(2, 0), UNIT, placements, rng=NumpyRandomSource(0))
    assert isinstance(result, Placement)


def test_independent_axis_draws_width_then_height() -> None:
    policy = IndependentAxisPolicy([1, 4], [2, 3])
    placements: list[Placement] = []
    result = attempt_placement(Pos(0, 0), policy, placements, rng=_ScriptedRandom([4, 2]))
    assert result == Placement(Pos(0, 0), Dims(4, 2))


@pytest.mark.parametrize(
    "rows,cols",
    [(-1, 3), (3, -1), (2.0, 3), (3, "4"), (True, 3), (None, 3)],
)
def test_invalid_grid_size_raises(rows, cols) -> None:
    with pytest.raises(InvalidArgument):
        pack_grid(rows, cols, [UNIT])


def test_invalid_passes_fail_before_any_work() -> None:
    """不正なパスが後ろにあっても、配置や棄却記録は一切行われない。"""
    rejections: list[Rejection] = []
    with pytest.raises(InvalidArgument):
        pack_grid(3, 3, ["mixed", "no-such-policy"], rejections=rejections)
    assert rejections == []

    with pytest.raises(InvalidArgument):
        pack_grid(3, 3, [object()])
    with pytest.raises(InvalidArgument):
        pack_grid(3, 3, UNIT)  # type: ignore[arg-type]


def test_unit_fill_helpers() -> None:
    assert ends_with_unit_fill(["mixed", "unit"])
    assert not ends_with_unit_fill(["mixed"])
    assert not ends_with_unit_fill([])

    passes = with_unit_fill(["pool"])
    assert [p.name for p in passes] == ["pool", "unit"]
    assert [p.name for p in with_unit_fill(["pool", UNIT])] == ["pool", "unit"]


def test_pass_statistics_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="blockgrid.core.packer"):
        pack_grid(2, 2, ["unit"], rng=NumpyRandomSource(0))
    assert "pass 0 (unit): accepted=4 rejected=0 total=4" in caplog.text


def test_numpy_integer_grid_size_is_accepted() -> None:
    placements = pack_grid(np.int64(2), np.int32(3), ["unit"], rng=NumpyRandomSource(0))
    assert len(placements) == 6
    assert coverage_report(2, 3, placements).is_exact


class _VerticalDomino(ShapePolicy):
    """draw / candidates だけを実装した最小のポリシー。"""

    def draw(self, rng) -> Dims:
        return Dims(1, 2)

    def candidates(self) -> tuple[Dims, ...]:
        return (Dims(1, 2),)


def test_minimal_custom_policy_packs_and_logs(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="blockgrid.core.packer"):
        placements = pack_grid(2, 2, [_VerticalDomino()], rng=NumpyRandomSource(0))

    assert placements == [
        Placement(Pos(0, 0), Dims(1, 2)),
        Placement(Pos(1, 0), Dims(1, 2)),
    ]
    assert "pass 0 (custom): accepted=2 rejected=2 total=2" in caplog.text
