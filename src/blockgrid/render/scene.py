"""
どこで: `src/blockgrid/render/scene.py`。
何を: 描画スタイル（塗り・線色・線幅・閉路）と RealizedGeometry を束ねる SceneLayer を定義する。
なぜ: flat / extruded の両描画経路と SVG/PNG 出力で共通のシーン表現を使うため。
"""

from __future__ import annotations

from dataclasses import dataclass

from blockgrid.core.palette import ColorRGB
from blockgrid.core.realized_geometry import RealizedGeometry


@dataclass(frozen=True, slots=True)
class SceneLayer:
    """同一スタイルで描くポリライン群。

    Parameters
    ----------
    realized : RealizedGeometry
        描画対象。座標はキャンバス単位（px）。
    fill : ColorRGB or None
        塗り色（0..1）。None なら塗らない。
    stroke : ColorRGB or None
        線色（0..1）。None なら線を引かない。
    thickness : float
        線幅（キャンバス単位）。
    closed : bool
        各ポリラインを閉路として扱うかどうか。
    """

    realized: RealizedGeometry
    fill: ColorRGB | None = None
    stroke: ColorRGB | None = None
    thickness: float = 1.0
    closed: bool = False

    def __post_init__(self) -> None:
        if self.stroke is not None and self.thickness <= 0:
            raise ValueError("thickness は正の値である必要がある")


__all__ = ["SceneLayer"]
