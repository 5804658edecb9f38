"""
どこで: `src/blockgrid/render/flat.py`。
何を: 着色済み配置を平面の矩形（4 頂点の閉ポリライン）として描画レイヤ化する。
なぜ: 2D スケッチの表示・SVG 出力を、パッキング結果から直接組み立てるため。
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from blockgrid.core.palette import ColouredPlacement, Palette, hex_to_rgb01
from blockgrid.core.realized_geometry import RealizedGeometry, geometry_from_polylines
from blockgrid.render.scene import SceneLayer


def _rect_polyline(placement: ColouredPlacement, cell_size: float) -> np.ndarray:
    p = placement.placement
    x0 = float(p.pos.x) * cell_size
    y0 = float(p.pos.y) * cell_size
    x1 = x0 + float(p.dims.w) * cell_size
    y1 = y0 + float(p.dims.h) * cell_size
    return np.array([[x0, y0], [x1, y0], [x1, y1], [x0, y1]], dtype=np.float32)


def placement_rects(
    placements: Sequence[ColouredPlacement], cell_size: float
) -> RealizedGeometry:
    """配置ごとに 1 本の矩形ポリライン（左上から時計回り）を返す。

    グリッド外へはみ出す配置もそのまま描く。切り詰めはキャンバス側に任せる。
    """
    return geometry_from_polylines([_rect_polyline(p, float(cell_size)) for p in placements])


def flat_layers(
    placements: Sequence[ColouredPlacement],
    cell_size: float,
    palette: Palette,
    *,
    outline_width: float = 3.0,
) -> list[SceneLayer]:
    """色ごとに 1 レイヤへまとめた塗り矩形レイヤ列を返す。

    レイヤ順は各色が最初に現れた配置順。配置同士は重ならないので描画順は結果に影響しない。
    """
    by_colour: dict[str, list[ColouredPlacement]] = {}
    for p in placements:
        by_colour.setdefault(p.colour, []).append(p)

    outline = hex_to_rgb01(palette.outline)
    layers: list[SceneLayer] = []
    for colour, group in by_colour.items():
        layers.append(
            SceneLayer(
                realized=placement_rects(group, cell_size),
                fill=hex_to_rgb01(colour),
                stroke=outline if outline_width > 0 else None,
                thickness=float(outline_width) if outline_width > 0 else 1.0,
                closed=True,
            )
        )
    return layers


__all__ = ["flat_layers", "placement_rects"]
