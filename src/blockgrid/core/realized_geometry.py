# src/blockgrid/core/realized_geometry.py
# 描画・出力に渡すポリライン列（coords/offsets 配列）のモデルと組み立てヘルパ。

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, slots=True)
class RealizedGeometry:
    """ポリライン列を連続配列で表現する。

    Parameters
    ----------
    coords : np.ndarray
        float32 型 shape (N, 3) の頂点配列。
    offsets : np.ndarray
        int32 型 shape (M+1,) のポリライン開始インデックス配列。

    Notes
    -----
    配列は writeable=False に固定する。
    """

    coords: np.ndarray
    offsets: np.ndarray

    def __post_init__(self) -> None:
        coords = np.asarray(self.coords)
        offsets = np.asarray(self.offsets)

        if coords.ndim == 2 and coords.shape[1] == 2:
            # 平面入力は z=0 を補う。
            z = np.zeros((coords.shape[0], 1), dtype=coords.dtype)
            coords = np.concatenate([coords, z], axis=1)
        if coords.ndim != 2 or coords.shape[1] != 3:
            raise ValueError("coords は shape (N,3) の 2 次元配列である必要がある")
        if coords.dtype != np.float32:
            coords = coords.astype(np.float32, copy=False)

        if offsets.ndim != 1 or offsets.size == 0:
            raise ValueError("offsets は 1 要素以上の 1 次元配列である必要がある")
        if offsets.dtype != np.int32:
            offsets = offsets.astype(np.int32, copy=False)
        if offsets[0] != 0 or offsets[-1] != coords.shape[0]:
            raise ValueError("offsets は 0 で始まり coords 行数で終わる必要がある")
        if np.any(np.diff(offsets) < 0):
            raise ValueError("offsets は単調非減少である必要がある")

        coords.setflags(write=False)
        offsets.setflags(write=False)
        object.__setattr__(self, "coords", coords)
        object.__setattr__(self, "offsets", offsets)

    @property
    def n_polylines(self) -> int:
        return int(self.offsets.size) - 1

    def polylines(self) -> Iterator[np.ndarray]:
        """各ポリラインの頂点配列（shape (n, 3) のビュー）を順に返す。"""
        for start, end in zip(self.offsets[:-1], self.offsets[1:]):
            yield self.coords[int(start) : int(end)]


def empty_geometry() -> RealizedGeometry:
    """頂点 0 の RealizedGeometry を返す。"""
    coords = np.zeros((0, 3), dtype=np.float32)
    offsets = np.zeros((1,), dtype=np.int32)
    return RealizedGeometry(coords=coords, offsets=offsets)


def geometry_from_polylines(polylines: Sequence[np.ndarray]) -> RealizedGeometry:
    """shape (n, 2|3) のポリライン列を 1 つの RealizedGeometry にまとめる。"""
    if not polylines:
        return empty_geometry()

    arrays: list[np.ndarray] = []
    for line in polylines:
        arr = np.asarray(line, dtype=np.float32)
        if arr.ndim != 2 or arr.shape[1] not in (2, 3):
            raise ValueError(f"ポリラインは shape (n,2|3) である必要がある: got={arr.shape}")
        if arr.shape[1] == 2:
            arr = np.concatenate([arr, np.zeros((arr.shape[0], 1), dtype=np.float32)], axis=1)
        arrays.append(arr)

    offsets = np.zeros(len(arrays) + 1, dtype=np.int32)
    offsets[1:] = np.cumsum([a.shape[0] for a in arrays])
    return RealizedGeometry(coords=np.concatenate(arrays, axis=0), offsets=offsets)


def concat_realized_geometries(*geometries: RealizedGeometry) -> RealizedGeometry:
    """複数の RealizedGeometry を順に連結して 1 つにまとめる。"""
    if not geometries:
        return empty_geometry()

    total_coords = np.concatenate([g.coords for g in geometries], axis=0)

    new_offsets: list[int] = [0]
    offset_base = 0
    for g in geometries:
        # 先頭 0 を除いた部分だけをシフトして足し込む。
        new_offsets.extend((g.offsets[1:] + offset_base).tolist())
        offset_base += int(g.offsets[-1])

    return RealizedGeometry(
        coords=total_coords,
        offsets=np.asarray(new_offsets, dtype=np.int32),
    )


__all__ = [
    "RealizedGeometry",
    "concat_realized_geometries",
    "empty_geometry",
    "geometry_from_polylines",
]
