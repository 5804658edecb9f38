"""
どこで: `src/blockgrid/core/occupancy.py`。
何を: セルの空き判定（短絡評価版・診断版）と、配置集合の被覆数集計を提供する。
なぜ: パッカーの受理判定と、結果の「重なりなし / 全被覆」検証を同じ規則で行うため。
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from numba import njit  # type: ignore[import-untyped]

from blockgrid.core.placement import Placement, Pos, covers


def is_empty(pos: Pos, placements: Sequence[Placement]) -> bool:
    """どの配置にも覆われていなければ True を返す（最初の一致で打ち切る）。"""
    return not any(covers(p, pos) for p in placements)


def first_cover(pos: Pos, placements: Sequence[Placement]) -> Placement | None:
    """`pos` を覆う最初の配置を返す。無ければ None。

    Notes
    -----
    `is_empty` の診断版。棄却理由（衝突相手）を記録するために使う。
    """
    for p in placements:
        if covers(p, pos):
            return p
    return None


@njit(cache=True)
def _accumulate_counts(
    rects: np.ndarray, num_rows: int, num_cols: int
) -> np.ndarray:
    """(x, y, w, h) 行列からグリッド内セルごとの被覆数を数える（Numba 実装）。"""
    counts = np.zeros((num_rows, num_cols), dtype=np.int32)
    for i in range(rects.shape[0]):
        x0 = rects[i, 0]
        y0 = rects[i, 1]
        x1 = min(x0 + rects[i, 2], num_cols)
        y1 = min(y0 + rects[i, 3], num_rows)
        for y in range(max(y0, 0), y1):
            for x in range(max(x0, 0), x1):
                counts[y, x] += 1
    return counts


def coverage_counts(
    num_rows: int, num_cols: int, placements: Sequence[Placement]
) -> np.ndarray:
    """グリッド内の各セルを覆う配置数を shape (num_rows, num_cols) で返す。

    グリッド外へはみ出した部分は数えない。
    """
    rects = np.zeros((len(placements), 4), dtype=np.int64)
    for i, p in enumerate(placements):
        rects[i] = (p.pos.x, p.pos.y, p.dims.w, p.dims.h)
    return _accumulate_counts(rects, int(num_rows), int(num_cols))


@dataclass(frozen=True, slots=True)
class CoverageReport:
    """配置集合のグリッド被覆状況。"""

    total_cells: int
    covered_cells: int
    uncovered: tuple[Pos, ...]
    overlapping: tuple[Pos, ...]

    @property
    def is_full(self) -> bool:
        """全セルが少なくとも 1 つの配置に覆われているなら True。"""
        return not self.uncovered

    @property
    def is_exact(self) -> bool:
        """全セルがちょうど 1 つの配置に覆われているなら True。"""
        return not self.uncovered and not self.overlapping


def coverage_report(
    num_rows: int, num_cols: int, placements: Sequence[Placement]
) -> CoverageReport:
    """被覆数から未被覆セル・多重被覆セルを行優先で列挙して返す。"""
    counts = coverage_counts(num_rows, num_cols, placements)
    uncovered = tuple(Pos(int(x), int(y)) for y, x in np.argwhere(counts == 0))
    overlapping = tuple(Pos(int(x), int(y)) for y, x in np.argwhere(counts > 1))
    total = int(num_rows) * int(num_cols)
    return CoverageReport(
        total_cells=total,
        covered_cells=total - len(uncovered),
        uncovered=uncovered,
        overlapping=overlapping,
    )


__all__ = [
    "CoverageReport",
    "coverage_counts",
    "coverage_report",
    "first_cover",
    "is_empty",
]
