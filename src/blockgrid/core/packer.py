"""
どこで: `src/blockgrid/core/packer.py`。
何を: 不規則グリッドのパッキング（行優先走査 + 貪欲・非バックトラックの配置）を実装する。
なぜ: 重なりのない矩形ブロック列を、乱数源とパス構成だけの決定的関数として得るため。
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from blockgrid.core.errors import InvalidArgument
from blockgrid.core.occupancy import first_cover
from blockgrid.core.placement import Dims, Placement, Pos, _require_int, footprint
from blockgrid.core.random_source import NumpyRandomSource, RandomSource
from blockgrid.core.shape_policy import UNIT, ShapePolicy, resolve_shape_policy

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Rejection:
    """棄却された配置試行の診断レコード。

    Parameters
    ----------
    pos : Pos
        試行したアンカー位置。
    dims : Dims
        引いた候補寸法。
    blocker : Placement
        足跡内で最初に衝突した既存配置。
    """

    pos: Pos
    dims: Dims
    blocker: Placement


def enumerate_cells(num_rows: int, num_cols: int) -> list[Pos]:
    """全セル位置を行優先（y 外側, x 内側）で返す。

    この順序が大きい形状を先に取るセルを決めるため、結果の形を左右する。
    """
    return [Pos(x, y) for y in range(num_rows) for x in range(num_cols)]


def attempt_placement(
    pos: Pos,
    policy: ShapePolicy,
    placements: list[Placement],
    *,
    rng: RandomSource,
) -> Placement | Rejection:
    """`pos` に policy から引いた形状を 1 回だけ試し、受理なら placements に追加する。

    Parameters
    ----------
    pos : Pos
        アンカー位置。
    policy : ShapePolicy
        候補寸法の抽選ポリシー。`pos` が既に覆われていても必ず 1 回引く。
    placements : list[Placement]
        共有の配置列。受理時のみ末尾に追加される。
    rng : RandomSource
        乱数源。

    Returns
    -------
    Placement or Rejection
        受理された配置、または衝突相手を含む棄却レコード。

    Notes
    -----
    足跡がグリッド外へはみ出しても棄却しない。棄却理由は既存配置との衝突だけ。
    """
    dims = policy.draw(rng)
    for cell in footprint(pos, dims):
        blocker = first_cover(cell, placements)
        if blocker is not None:
            return Rejection(pos=pos, dims=dims, blocker=blocker)

    placement = Placement(pos=Pos(pos.x, pos.y), dims=dims)
    placements.append(placement)
    return placement


def _validate_grid_size(value: Any, *, name: str) -> int:
    size = _require_int(value, name=name)
    if size < 0:
        raise InvalidArgument(f"{name} は 0 以上である必要がある: got={size}")
    return size


def _resolve_passes(passes: Sequence[ShapePolicy | str]) -> list[ShapePolicy]:
    if isinstance(passes, (str, ShapePolicy)):
        raise InvalidArgument("passes はポリシーの列で指定する（単体は [policy] で包む）")
    try:
        items = list(passes)
    except TypeError as exc:
        raise InvalidArgument(f"passes は列である必要がある: got={passes!r}") from exc
    return [resolve_shape_policy(p) for p in items]


def ends_with_unit_fill(passes: Sequence[ShapePolicy | str]) -> bool:
    """最終パスが 1x1 専用ポリシーなら True（全被覆が保証される構成）。"""
    resolved = _resolve_passes(passes)
    return bool(resolved) and resolved[-1].is_unit


def with_unit_fill(passes: Sequence[ShapePolicy | str]) -> list[ShapePolicy]:
    """最終パスが 1x1 専用でなければ UNIT を末尾に足したパス列を返す。"""
    resolved = _resolve_passes(passes)
    if not resolved or not resolved[-1].is_unit:
        resolved.append(UNIT)
    return resolved


def pack_grid(
    num_rows: int,
    num_cols: int,
    passes: Sequence[ShapePolicy | str],
    *,
    rng: RandomSource | None = None,
    rejections: list[Rejection] | None = None,
) -> list[Placement]:
    """num_rows x num_cols のグリッドを複数パスで貪欲にパッキングする。

    Parameters
    ----------
    num_rows, num_cols : int
        グリッドの行数・列数（0 以上の整数）。
    passes : Sequence[ShapePolicy | str]
        パスごとの形状ポリシー（または登録名）。宣言順に実行する。
    rng : RandomSource or None, optional
        乱数源。None の場合は seed なしの `NumpyRandomSource` を使う。
    rejections : list[Rejection] or None, optional
        渡された場合、棄却レコードをすべて追記する。

    Returns
    -------
    list[Placement]
        走査順（空間順ではない）に並んだ、互いに重ならない配置列。

    Raises
    ------
    InvalidArgument
        寸法が負・非整数、または passes に不正なポリシーが含まれる場合。
        配置処理の前に検証するため、途中状態は外に漏れない。

    Notes
    -----
    最終パスが 1x1 専用（`UNIT`）なら全セルの被覆が保証される。そうでない構成では
    未被覆セルが残り得るが、それはエラーではなく正当な結果である
    （`with_unit_fill` / `ends_with_unit_fill` を参照）。
    行数・列数が 0 のグリッドは空リストを返す。
    """
    rows = _validate_grid_size(num_rows, name="num_rows")
    cols = _validate_grid_size(num_cols, name="num_cols")
    policies = _resolve_passes(passes)
    if rng is None:
        rng = NumpyRandomSource()

    cells = enumerate_cells(rows, cols)
    placements: list[Placement] = []

    for index, policy in enumerate(policies):
        accepted = 0
        rejected = 0
        for pos in cells:
            result = attempt_placement(pos, policy, placements, rng=rng)
            if isinstance(result, Rejection):
                rejected += 1
                if rejections is not None:
                    rejections.append(result)
            else:
                accepted += 1
        _logger.debug(
            "pass %d (%s): accepted=%d rejected=%d total=%d",
            index,
            policy.name,
            accepted,
            rejected,
            len(placements),
        )

    return placements


__all__ = [
    "Rejection",
    "attempt_placement",
    "ends_with_unit_fill",
    "enumerate_cells",
    "pack_grid",
    "with_unit_fill",
]
