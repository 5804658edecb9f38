"""
どこで: `src/blockgrid/render/guides.py`。
何を: セル境界のガイド線（縦 num_cols+1 本 + 横 num_rows+1 本）を線分列として構築する。
なぜ: 配置の上に重ねる装飾オーバーレイを、配置とは独立に生成するため。
"""

from __future__ import annotations

import numpy as np

from blockgrid.core.palette import hex_to_rgb01
from blockgrid.core.realized_geometry import RealizedGeometry, empty_geometry
from blockgrid.render.scene import SceneLayer


def cell_guidelines(num_rows: int, num_cols: int, cell_size: float) -> RealizedGeometry:
    """セル境界の線分列を返す。

    Parameters
    ----------
    num_rows, num_cols : int
        グリッドの行数・列数。
    cell_size : float
        1 セルの一辺（キャンバス単位）。

    Returns
    -------
    RealizedGeometry
        縦線を左から、続いて横線を上から並べた 2 頂点ポリライン列。
    """
    rows = int(num_rows)
    cols = int(num_cols)
    if rows < 0 or cols < 0:
        raise ValueError("guidelines の num_rows/num_cols は 0 以上である必要がある")
    if rows == 0 or cols == 0:
        return empty_geometry()

    cs = np.float32(cell_size)
    width = np.float32(cols) * cs
    height = np.float32(rows) * cs
    xs = np.arange(cols + 1, dtype=np.float32) * cs
    ys = np.arange(rows + 1, dtype=np.float32) * cs

    lines = np.zeros((cols + 1 + rows + 1, 2, 3), dtype=np.float32)
    vertical = lines[: cols + 1]
    vertical[:, 0, 0] = xs
    vertical[:, 1, 0] = xs
    vertical[:, 1, 1] = height
    horizontal = lines[cols + 1 :]
    horizontal[:, 0, 1] = ys
    horizontal[:, 1, 1] = ys
    horizontal[:, 1, 0] = width

    coords = lines.reshape((-1, 3))
    offsets = np.arange(0, coords.shape[0] + 1, 2, dtype=np.int32)
    return RealizedGeometry(coords=coords, offsets=offsets)


def guideline_layer(
    num_rows: int,
    num_cols: int,
    cell_size: float,
    *,
    colour: str,
    thickness: float,
) -> SceneLayer:
    """ガイド線を細線レイヤとして返す。"""
    return SceneLayer(
        realized=cell_guidelines(num_rows, num_cols, cell_size),
        stroke=hex_to_rgb01(colour),
        thickness=float(thickness),
    )


__all__ = ["cell_guidelines", "guideline_layer"]
