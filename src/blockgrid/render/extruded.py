"""
どこで: `src/blockgrid/render/extruded.py`。
何を: 着色済み配置を高さ付きの箱として押し出し、固定アイソメ投影でキャンバスへ収める。
なぜ: 3D スケッチ相当の見た目を、カメラやライティング無しのヘッドレス出力で得るため。

- 箱は XY 平面上の足跡（gap 分だけ内側に縮める）を Z 方向へ
  `cell_size * height_cells * height_scale` だけ押し出したもの。
- 見える面は上面（+Z）、+X 側面、+Y 側面の 3 枚。
- 描画順は足跡の前後関係によるトポロジカル順（奥の箱から）。
"""

from __future__ import annotations

import heapq
import math
from collections.abc import Sequence

import numpy as np

from blockgrid.core.palette import ColouredPlacement, Palette, hex_to_rgb01
from blockgrid.core.realized_geometry import (
    RealizedGeometry,
    concat_realized_geometries,
    geometry_from_polylines,
)
from blockgrid.render.scene import SceneLayer

_COS30 = math.cos(math.radians(30.0))
_SIN30 = math.sin(math.radians(30.0))


def _box_extent(
    placement: ColouredPlacement, cell_size: float, gap: float, height_cells: float
) -> tuple[float, float, float, float, float]:
    p = placement.placement
    half_gap = 0.5 * gap
    x0 = p.pos.x * cell_size + half_gap
    y0 = p.pos.y * cell_size + half_gap
    x1 = (p.pos.x + p.dims.w) * cell_size - half_gap
    y1 = (p.pos.y + p.dims.h) * cell_size - half_gap
    top = cell_size * height_cells * float(placement.height_scale)
    return x0, y0, x1, y1, top


def box_faces(
    placement: ColouredPlacement,
    cell_size: float,
    *,
    gap: float = 0.1,
    height_cells: float = 3.0,
) -> RealizedGeometry:
    """1 配置ぶんの可視 3 面（上面, +X 側面, +Y 側面）を 3D 閉ポリラインで返す。

    Parameters
    ----------
    placement : ColouredPlacement
        着色済み配置。`height_scale` を押し出し高さに使う。
    cell_size : float
        1 セルの一辺（キャンバス単位）。
    gap : float, optional
        隣接する箱同士の隙間。0 以上 cell_size 未満。
    height_cells : float, optional
        height_scale=1 のときの高さ（セル数）。

    Returns
    -------
    RealizedGeometry
        4 頂点ポリライン 3 本。
    """
    cs = float(cell_size)
    g = float(gap)
    if cs <= 0:
        raise ValueError(f"cell_size は正の値である必要がある: got={cell_size}")
    if g < 0 or g >= cs:
        raise ValueError(f"gap は 0 <= gap < cell_size である必要がある: got={gap}")

    x0, y0, x1, y1, top = _box_extent(placement, cs, g, float(height_cells))
    top_face = np.array(
        [[x0, y0, top], [x1, y0, top], [x1, y1, top], [x0, y1, top]], dtype=np.float32
    )
    side_x = np.array(
        [[x1, y0, top], [x1, y1, top], [x1, y1, 0.0], [x1, y0, 0.0]], dtype=np.float32
    )
    side_y = np.array(
        [[x0, y1, top], [x1, y1, top], [x1, y1, 0.0], [x0, y1, 0.0]], dtype=np.float32
    )
    return geometry_from_polylines([top_face, side_x, side_y])


def project_isometric(realized: RealizedGeometry) -> RealizedGeometry:
    """3D 座標を固定アイソメ投影して z=0 の平面座標に変換する。

    `sx = (X - Y) cos30°`, `sy = (X + Y) sin30° - Z`（画面 y は下向き）。
    """
    c = realized.coords.astype(np.float64)
    out = np.zeros_like(c)
    out[:, 0] = (c[:, 0] - c[:, 1]) * _COS30
    out[:, 1] = (c[:, 0] + c[:, 1]) * _SIN30 - c[:, 2]
    return RealizedGeometry(coords=out.astype(np.float32), offsets=realized.offsets.copy())


def _fit_transform(
    geometries: Sequence[RealizedGeometry],
    canvas_size: tuple[int, int],
    margin: float,
) -> tuple[float, np.ndarray]:
    """全ジオメトリの bbox をキャンバス中央に収める (scale, translate) を返す。"""
    merged = concat_realized_geometries(*geometries)
    if merged.coords.shape[0] == 0:
        return 1.0, np.zeros(2, dtype=np.float64)

    xy = merged.coords[:, :2].astype(np.float64)
    lo = xy.min(axis=0)
    hi = xy.max(axis=0)
    span = np.maximum(hi - lo, 1e-9)

    canvas_w, canvas_h = canvas_size
    avail = np.array([canvas_w - 2 * margin, canvas_h - 2 * margin], dtype=np.float64)
    if np.any(avail <= 0):
        raise ValueError(f"margin が canvas_size に対して大きすぎる: margin={margin}")
    scale = float(np.min(avail / span))

    centre_src = 0.5 * (lo + hi)
    centre_dst = np.array([0.5 * canvas_w, 0.5 * canvas_h], dtype=np.float64)
    translate = centre_dst - centre_src * scale
    return scale, translate


def _apply_transform(
    realized: RealizedGeometry, scale: float, translate: np.ndarray
) -> RealizedGeometry:
    coords = realized.coords.astype(np.float64)
    coords[:, :2] = coords[:, :2] * scale + translate
    return RealizedGeometry(coords=coords.astype(np.float32), offsets=realized.offsets.copy())


def _cell_rect(p: ColouredPlacement) -> tuple[int, int, int, int]:
    pl = p.placement
    return pl.pos.x, pl.pos.y, pl.pos.x + pl.dims.w, pl.pos.y + pl.dims.h


def _is_behind(a: tuple[int, int, int, int], b: tuple[int, int, int, int]) -> bool:
    """足跡 a が b より奥にあり、先に描く必要があれば True。

    a が b の -X 側にあって a.y0 < b.y1、または -Y 側にあって a.x0 < b.x1 の場合。
    反対の対角（-X 側かつ +Y 側）は投影上で左右に分かれるため順序を持たない。
    """
    ax0, ay0, ax1, ay1 = a
    bx0, by0, bx1, by1 = b
    if ax1 <= bx0 and ay0 < by1:
        return True
    return ay1 <= by0 and ax0 < bx1


def depth_order(placements: Sequence[ColouredPlacement]) -> list[ColouredPlacement]:
    """奥から手前の順に並べ替えて返す。

    Notes
    -----
    足跡どうしの「奥にある」関係でトポロジカルソートする。制約のない箱どうしは
    足跡中心の X+Y が小さい順（同値なら入力順）。
    重なった足跡が渡されて関係が循環した場合は、残りの中心和最小の箱から続ける。
    """
    items = list(placements)
    n = len(items)
    rects = [_cell_rect(p) for p in items]
    keys = [0.5 * (x0 + x1) + 0.5 * (y0 + y1) for x0, y0, x1, y1 in rects]

    successors: list[list[int]] = [[] for _ in range(n)]
    indegree = [0] * n
    for i in range(n):
        for j in range(n):
            if i != j and _is_behind(rects[i], rects[j]):
                successors[i].append(j)
                indegree[j] += 1

    ready = [(keys[i], i) for i in range(n) if indegree[i] == 0]
    heapq.heapify(ready)
    done = [False] * n
    order: list[int] = []
    while len(order) < n:
        if not ready:
            rest = min((keys[i], i) for i in range(n) if not done[i])
            heapq.heappush(ready, rest)
        _, i = heapq.heappop(ready)
        if done[i]:
            continue
        done[i] = True
        order.append(i)
        for j in successors[i]:
            indegree[j] -= 1
            if indegree[j] == 0 and not done[j]:
                heapq.heappush(ready, (keys[j], j))

    return [items[i] for i in order]


def extruded_layers(
    placements: Sequence[ColouredPlacement],
    cell_size: float,
    palette: Palette,
    *,
    canvas_size: tuple[int, int],
    gap: float = 0.1,
    height_cells: float = 3.0,
    outline_width: float = 1.0,
    margin: float = 20.0,
) -> list[SceneLayer]:
    """箱ごとに 1 レイヤ（3 面の塗り閉路）を奥から順に返す。

    座標は投影後にキャンバス中央へフィットさせる。
    """
    ordered = depth_order(placements)
    projected = [
        project_isometric(box_faces(p, cell_size, gap=gap, height_cells=height_cells))
        for p in ordered
    ]
    if not projected:
        return []

    scale, translate = _fit_transform(projected, canvas_size, float(margin))
    outline = hex_to_rgb01(palette.outline)
    layers: list[SceneLayer] = []
    for p, geom in zip(ordered, projected, strict=True):
        layers.append(
            SceneLayer(
                realized=_apply_transform(geom, scale, translate),
                fill=hex_to_rgb01(p.colour),
                stroke=outline if outline_width > 0 else None,
                thickness=float(outline_width) if outline_width > 0 else 1.0,
                closed=True,
            )
        )
    return layers


__all__ = [
    "box_faces",
    "depth_order",
    "extruded_layers",
    "project_isometric",
]
