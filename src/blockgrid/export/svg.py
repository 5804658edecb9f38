"""
どこで: `src/blockgrid/export/svg.py`。
何を: SceneLayer 列を SVG として保存する関数を提供する。
なぜ: ウィンドウなしで決定的なファイル出力を得て、比較・再生成できるようにするため。
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from pathlib import Path

import numpy as np

from blockgrid.core.palette import ColorRGB
from blockgrid.render.scene import SceneLayer

_SVG_NS = "http://www.w3.org/2000/svg"
_FLOAT_DECIMALS = 3


def _fmt(value: float, *, decimals: int = _FLOAT_DECIMALS) -> str:
    """SVG 出力向けに float を決定的な文字列へ変換して返す。"""
    text = f"{float(value):.{int(decimals)}f}"
    if text.startswith("-0") and float(text) == 0.0:
        return text[1:]
    return text


def rgb01_to_hex(rgb01: ColorRGB) -> str:
    """0..1 float RGB を #RRGGBB に変換して返す（範囲外はクランプ）。"""
    out: list[int] = []
    for v in rgb01:
        fv = min(max(float(v), 0.0), 1.0)
        out.append(int(round(fv * 255.0)))
    r, g, b = out
    return f"#{r:02X}{g:02X}{b:02X}"


def _iter_polylines(
    *, coords: np.ndarray, offsets: np.ndarray, closed: bool
) -> Iterator[np.ndarray]:
    """coords/offsets から描画対象の polyline（shape (N,2)）を列挙する。"""
    min_points = 3 if closed else 2
    for start, end in zip(offsets[:-1], offsets[1:]):
        start_i = int(start)
        end_i = int(end)
        if end_i - start_i < min_points:
            continue
        yield coords[start_i:end_i, :2]


def _polyline_to_d(polyline_xy: np.ndarray, *, closed: bool) -> str:
    """polyline を SVG path の d 属性へ変換して返す。"""
    parts = [f"M {_fmt(polyline_xy[0, 0])} {_fmt(polyline_xy[0, 1])}"]
    for xy in polyline_xy[1:]:
        parts.append(f"L {_fmt(xy[0])} {_fmt(xy[1])}")
    if closed:
        parts.append("Z")
    return " ".join(parts)


def _style_attrs(layer: SceneLayer) -> str:
    fill = rgb01_to_hex(layer.fill) if layer.fill is not None else "none"
    if layer.stroke is None:
        return f'fill="{fill}" stroke="none"'
    return (
        f'fill="{fill}" stroke="{rgb01_to_hex(layer.stroke)}" '
        f'stroke-width="{_fmt(layer.thickness)}" stroke-linejoin="round"'
    )


def export_svg(
    layers: Sequence[SceneLayer],
    path: str | Path,
    *,
    canvas_size: tuple[int, int] | None = None,
    background_color: ColorRGB | None = None,
) -> Path:
    """Layer 列を SVG として保存する。

    Parameters
    ----------
    layers : Sequence[SceneLayer]
        描画順に並んだレイヤ列。
    path : str or Path
        出力先パス。親ディレクトリは必要に応じて作成する。
    canvas_size : tuple[int, int] or None, optional
        キャンバス寸法。viewBox の外（はみ出した配置）は表示上切り詰められる。
    background_color : ColorRGB or None, optional
        背景色（0..1）。None の場合は背景矩形を出力しない。

    Returns
    -------
    Path
        保存先パス。

    Raises
    ------
    ValueError
        canvas_size が None、または正でない場合。
    """
    _path = Path(path)
    if canvas_size is None:
        raise ValueError("canvas_size=None は未対応（現在は必須）")

    canvas_w, canvas_h = canvas_size
    if canvas_w <= 0 or canvas_h <= 0:
        raise ValueError("canvas_size は正の値である必要がある")

    lines: list[str] = []
    lines.append('<?xml version="1.0" encoding="UTF-8"?>')
    lines.append(
        (
            f'<svg xmlns="{_SVG_NS}" viewBox="0 0 {int(canvas_w)} {int(canvas_h)}" '
            f'width="{int(canvas_w)}" height="{int(canvas_h)}">'
        )
    )
    if background_color is not None:
        lines.append(
            f'  <rect x="0" y="0" width="{int(canvas_w)}" height="{int(canvas_h)}" '
            f'fill="{rgb01_to_hex(background_color)}" />'
        )

    for layer in layers:
        style = _style_attrs(layer)
        coords = np.asarray(layer.realized.coords, dtype=np.float32)
        offsets = np.asarray(layer.realized.offsets, dtype=np.int32)
        for polyline_xy in _iter_polylines(
            coords=coords, offsets=offsets, closed=layer.closed
        ):
            d = _polyline_to_d(polyline_xy, closed=layer.closed)
            lines.append(f'  <path d="{d}" {style} />')

    lines.append("</svg>")

    _path.parent.mkdir(parents=True, exist_ok=True)
    with _path.open("w", encoding="utf-8", newline="\n") as f:
        f.write("\n".join(lines) + "\n")

    return _path


__all__ = ["export_svg", "rgb01_to_hex"]
