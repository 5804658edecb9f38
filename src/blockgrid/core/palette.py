"""
どこで: `src/blockgrid/core/palette.py`。
何を: 外部から与えられるパレットと、パッキング後の着色ステップを定義する。
なぜ: パッカーを幾何のみに保ち、色の割り当てを独立した写像として扱うため。
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from blockgrid.core.errors import InvalidArgument
from blockgrid.core.placement import Placement
from blockgrid.core.random_source import RandomSource

ColorRGB = tuple[float, float, float]

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")


def hex_to_rgb01(text: str) -> ColorRGB:
    """`#RRGGBB` を 0..1 float の RGB に変換して返す。

    Raises
    ------
    InvalidArgument
        6 桁の 16 進表記でない場合。
    """
    m = _HEX_RE.match(str(text).strip())
    if m is None:
        raise InvalidArgument(f"色は #RRGGBB 形式である必要がある: got={text!r}")
    digits = m.group(1)
    r = int(digits[0:2], 16)
    g = int(digits[2:4], 16)
    b = int(digits[4:6], 16)
    return r / 255.0, g / 255.0, b / 255.0


@dataclass(frozen=True, slots=True)
class Palette:
    """ブロック色・背景・ガイド線・輪郭の色セット（#RRGGBB 文字列）。"""

    colours: tuple[str, ...]
    background: str
    guidelines: str
    outline: str

    def __post_init__(self) -> None:
        colours = tuple(str(c) for c in self.colours)
        if not colours:
            raise InvalidArgument("Palette.colours は 1 色以上必要")
        for c in (*colours, self.background, self.guidelines, self.outline):
            hex_to_rgb01(c)
        object.__setattr__(self, "colours", colours)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, name: str = "palette") -> "Palette":
        """設定ファイルの mapping から Palette を組み立てる。"""
        try:
            colours = data["colours"]
            background = data["background"]
        except KeyError as exc:
            raise InvalidArgument(f"palettes.{name} に {exc.args[0]} がない") from exc
        if isinstance(colours, str):
            raise InvalidArgument(f"palettes.{name}.colours は列である必要がある: got={colours!r}")
        colours_t = tuple(str(c) for c in colours)
        if not colours_t:
            raise InvalidArgument(f"palettes.{name}.colours が空")
        return cls(
            colours=colours_t,
            background=str(background),
            guidelines=str(data.get("guidelines", colours_t[0])),
            outline=str(data.get("outline", background)),
        )


@dataclass(frozen=True, slots=True)
class ColouredPlacement:
    """着色ステップの出力。配置に色と押し出し高さ係数を添える。"""

    placement: Placement
    colour: str
    height_scale: float = 1.0


def assign_colours(
    placements: Sequence[Placement],
    palette: Palette,
    *,
    rng: RandomSource,
    height_scale_range: tuple[float, float] = (0.5, 1.0),
) -> list[ColouredPlacement]:
    """配置ごとに色 1 回・高さ係数 1 回を配置順に引いて返す。

    Parameters
    ----------
    placements : Sequence[Placement]
        `pack_grid` の結果。
    palette : Palette
        呼び出し側が所有するパレット。
    rng : RandomSource
        乱数源。
    height_scale_range : tuple[float, float], optional
        押し出し高さ係数の一様分布範囲 [low, high)。

    Returns
    -------
    list[ColouredPlacement]
        入力と同じ順序の着色済み配置列。
    """
    low, high = (float(v) for v in height_scale_range)
    if low < 0.0 or high < low:
        raise InvalidArgument(
            f"height_scale_range は 0 <= low <= high である必要がある: got={height_scale_range!r}"
        )
    out: list[ColouredPlacement] = []
    for p in placements:
        colour = rng.choice(palette.colours)
        height_scale = rng.uniform(low, high)
        out.append(ColouredPlacement(placement=p, colour=colour, height_scale=height_scale))
    return out


__all__ = [
    "ColorRGB",
    "ColouredPlacement",
    "Palette",
    "assign_colours",
    "hex_to_rgb01",
]
