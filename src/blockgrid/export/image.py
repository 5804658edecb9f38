"""
どこで: `src/blockgrid/export/image.py`。
何を: スケッチのレイヤ列を `.svg` / `.png` に書き出す。PNG は隣に置いた SVG を resvg で変換する。
なぜ: SVG を常に正として残し、PNG はキャンバス倍率を変えて何度でも作り直せるようにするため。
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from blockgrid.core.palette import ColorRGB
from blockgrid.export.svg import export_svg, rgb01_to_hex
from blockgrid.render.scene import SceneLayer

_logger = logging.getLogger(__name__)

_RESVG = "resvg"
_SUFFIXES = (".svg", ".png")


def png_output_size(canvas_size: tuple[int, int], scale: float) -> tuple[int, int]:
    """キャンバス寸法に `export.png.scale` を掛けた PNG のピクセル寸法を返す。"""
    canvas_w, canvas_h = (int(v) for v in canvas_size)
    if canvas_w <= 0 or canvas_h <= 0:
        raise ValueError(f"canvas_size は正の (width, height) である必要がある: got={canvas_size}")
    s = float(scale)
    if s <= 0:
        raise ValueError(f"png scale は正の値である必要がある: got={scale}")
    return int(canvas_w * s), int(canvas_h * s)


@dataclass(frozen=True, slots=True)
class PngTarget:
    """1 枚の PNG 変換ジョブ（入力 SVG・出力先・ピクセル寸法・背景色）。"""

    svg_path: Path
    png_path: Path
    size: tuple[int, int]
    background: str

    def command(self) -> list[str]:
        width, height = self.size
        return [
            _RESVG,
            "--width",
            str(width),
            "--height",
            str(height),
            "--background",
            self.background,
            str(self.svg_path),
            str(self.png_path),
        ]


def rasterize(target: PngTarget) -> Path:
    """resvg で target を変換し、PNG のパスを返す。

    Raises
    ------
    RuntimeError
        resvg が PATH 上に無い、または終了コードが 0 でない場合。
    """
    target.png_path.parent.mkdir(parents=True, exist_ok=True)
    cmd = target.command()
    _logger.debug("rasterize: %s", " ".join(cmd))
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except FileNotFoundError as exc:
        raise RuntimeError(
            f"{_RESVG} が PATH 上に見つからない（PNG 出力には resvg のインストールが必要）"
        ) from exc

    if proc.returncode != 0:
        details = (proc.stderr or proc.stdout or "").strip()
        raise RuntimeError(
            f"{_RESVG} で {target.png_path.name} を生成できなかった (exit={proc.returncode}): {details}"
        )
    return target.png_path


def export_image(
    layers: Sequence[SceneLayer],
    path: str | Path,
    *,
    canvas_size: tuple[int, int],
    background_color: ColorRGB = (1.0, 1.0, 1.0),
    png_scale: float = 1.0,
) -> Path:
    """レイヤ列を拡張子に応じて保存し、指定されたパスを返す。

    Parameters
    ----------
    layers : Sequence[SceneLayer]
        描画順のレイヤ列。
    path : str or Path
        `.svg` または `.png`。`.png` の場合は同名の `.svg` も残る。
    canvas_size : tuple[int, int]
        キャンバス寸法（SVG の viewBox）。
    background_color : ColorRGB, optional
        背景色。SVG の背景矩形と resvg の背景の両方に使う。
    png_scale : float, optional
        PNG のピクセル寸法 = canvas_size * png_scale。

    Raises
    ------
    ValueError
        未対応の拡張子。何も書き出さない。
    """
    out = Path(path)
    suffix = out.suffix.lower()
    if suffix not in _SUFFIXES:
        raise ValueError(f"未対応の画像フォーマット: {suffix!r}（{'/'.join(_SUFFIXES)} のみ）")

    svg_path = out if suffix == ".svg" else out.with_suffix(".svg")
    export_svg(layers, svg_path, canvas_size=canvas_size, background_color=background_color)
    if suffix == ".svg":
        return svg_path

    return rasterize(
        PngTarget(
            svg_path=svg_path,
            png_path=out,
            size=png_output_size(canvas_size, png_scale),
            background=rgb01_to_hex(background_color),
        )
    )


__all__ = ["PngTarget", "export_image", "png_output_size", "rasterize"]
