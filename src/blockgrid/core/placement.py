"""
どこで: `src/blockgrid/core/placement.py`。
何を: セル位置 Pos / 寸法 Dims / 配置 Placement の値型と被覆判定を定義する。
なぜ: パッキング・着色・描画のすべてが同じ不変な幾何表現を共有するため。
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any

from blockgrid.core.errors import InvalidArgument


def _require_int(value: Any, *, name: str) -> int:
    """bool を除く整数（numpy 整数を含む）であることを確認し、int にして返す。"""
    if isinstance(value, bool):
        raise InvalidArgument(f"{name} は整数である必要がある: got={value!r}")
    try:
        return operator.index(value)
    except TypeError as exc:
        raise InvalidArgument(f"{name} は整数である必要がある: got={value!r}") from exc


@dataclass(frozen=True, slots=True)
class Pos:
    """グリッド上のセル位置 (x, y)。"""

    x: int
    y: int


@dataclass(frozen=True, slots=True)
class Dims:
    """セル単位の幅と高さ。

    Raises
    ------
    InvalidArgument
        w/h が整数でない、または 1 未満の場合。
    """

    w: int
    h: int

    def __post_init__(self) -> None:
        w = _require_int(self.w, name="w")
        h = _require_int(self.h, name="h")
        if w < 1 or h < 1:
            raise InvalidArgument(f"Dims は w>=1, h>=1 である必要がある: got=({w}, {h})")
        object.__setattr__(self, "w", w)
        object.__setattr__(self, "h", h)

    @classmethod
    def coerce(cls, value: "Dims | tuple[int, int]") -> "Dims":
        """Dims または (w, h) タプルを Dims に正規化する。"""
        if isinstance(value, Dims):
            return value
        try:
            w, h = value
        except Exception as exc:
            raise InvalidArgument(f"形状は (w, h) の 2 要素である必要がある: got={value!r}") from exc
        return cls(w=w, h=h)

    @property
    def area(self) -> int:
        return self.w * self.h


@dataclass(frozen=True, slots=True)
class Placement:
    """受理された 1 ブロック。左上アンカー `pos` と寸法 `dims` のみを持つ。

    Notes
    -----
    色は持たない。着色は `blockgrid.core.palette.assign_colours` が別段で行う。
    """

    pos: Pos
    dims: Dims

    def cells(self) -> list[Pos]:
        """このブロックが覆うセル列（行優先）を返す。"""
        return footprint(self.pos, self.dims)


def covers(placement: Placement, pos: Pos) -> bool:
    """`placement` が `pos` を覆うかどうかを返す。

    x, y とも半開区間 `[p, p + w)` で判定する。右端・下端ちょうどのセルは覆わない。
    """
    px = placement.pos.x
    py = placement.pos.y
    return (
        px <= pos.x < px + placement.dims.w
        and py <= pos.y < py + placement.dims.h
    )


def footprint(pos: Pos, dims: Dims) -> list[Pos]:
    """アンカー `pos` に `dims` を置いたときに占めるセル列を返す。

    グリッド範囲外へのはみ出しはクリップしない。
    """
    return [
        Pos(x, y)
        for y in range(pos.y, pos.y + dims.h)
        for x in range(pos.x, pos.x + dims.w)
    ]


__all__ = ["Dims", "Placement", "Pos", "covers", "footprint"]
