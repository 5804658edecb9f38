# どこで: `src/blockgrid/__init__.py`。
# 何を: ルート `blockgrid` パッケージを定義し、パッキングと着色の公開 API を再エクスポートする。
# なぜ: import 起点を `blockgrid` に統一するため。

from __future__ import annotations

from blockgrid.core.errors import InvalidArgument
from blockgrid.core.packer import (
    Rejection,
    attempt_placement,
    ends_with_unit_fill,
    enumerate_cells,
    pack_grid,
    with_unit_fill,
)
from blockgrid.core.palette import ColouredPlacement, Palette, assign_colours
from blockgrid.core.placement import Dims, Placement, Pos, covers
from blockgrid.core.random_source import NumpyRandomSource, RandomSource
from blockgrid.core.shape_policy import (
    UNIT,
    IndependentAxisPolicy,
    PoolPolicy,
    ShapePolicy,
)

__all__ = [
    "ColouredPlacement",
    "Dims",
    "IndependentAxisPolicy",
    "InvalidArgument",
    "NumpyRandomSource",
    "Palette",
    "Placement",
    "PoolPolicy",
    "Pos",
    "RandomSource",
    "Rejection",
    "ShapePolicy",
    "UNIT",
    "assign_colours",
    "attempt_placement",
    "covers",
    "ends_with_unit_fill",
    "enumerate_cells",
    "pack_grid",
    "with_unit_fill",
]
