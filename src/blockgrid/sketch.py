"""
どこで: `src/blockgrid/sketch.py`。
何を: 設定・パレット・乱数源・現在の配置列を 1 つのコンテキストとして保持する Sketch を提供する。
なぜ: パレットや配置列をモジュールグローバルに置かず、呼び出し側が所有する状態として扱うため。
"""

from __future__ import annotations

import logging
import math
from pathlib import Path

from blockgrid.core.occupancy import CoverageReport, coverage_report
from blockgrid.core.packer import ends_with_unit_fill, pack_grid
from blockgrid.core.palette import ColouredPlacement, Palette, assign_colours, hex_to_rgb01
from blockgrid.core.placement import Placement
from blockgrid.core.random_source import NumpyRandomSource, RandomSource
from blockgrid.core.runtime_config import RuntimeConfig
from blockgrid.export.image import export_image
from blockgrid.render.extruded import extruded_layers
from blockgrid.render.flat import flat_layers
from blockgrid.render.guides import guideline_layer
from blockgrid.render.scene import SceneLayer

_logger = logging.getLogger(__name__)


class Sketch:
    """不規則グリッド 1 枚ぶんの状態。

    Parameters
    ----------
    config : RuntimeConfig
        キャンバス・パス構成・パレット・描画設定。
    seed : int or None, optional
        乱数 seed。None の場合は `config.seed` を使う。
    rng : RandomSource or None, optional
        注入する乱数源。指定時は seed より優先する。

    Notes
    -----
    生成時に 1 回 `regenerate()` する。グリッドの行数・列数は
    `floor(canvas / cell_size)` で決まる。
    """

    def __init__(
        self,
        config: RuntimeConfig,
        *,
        seed: int | None = None,
        rng: RandomSource | None = None,
    ) -> None:
        self.config = config
        self.palette: Palette = config.palette
        if rng is None:
            rng = NumpyRandomSource(seed if seed is not None else config.seed)
        self.rng = rng

        canvas_w, canvas_h = config.canvas_size
        self.num_cols = int(math.floor(canvas_w / config.cell_size))
        self.num_rows = int(math.floor(canvas_h / config.cell_size))

        self.placements: list[ColouredPlacement] = []
        self.regenerate()

    def regenerate(self) -> list[ColouredPlacement]:
        """配置列を破棄し、パッキングと着色をやり直す。"""
        raw = pack_grid(self.num_rows, self.num_cols, self.config.passes, rng=self.rng)
        self.placements = assign_colours(
            raw,
            self.palette,
            rng=self.rng,
            height_scale_range=self.config.height_scale_range,
        )

        report = self.coverage()
        if not report.is_full:
            level = logging.DEBUG if ends_with_unit_fill(self.config.passes) else logging.WARNING
            _logger.log(
                level,
                "未被覆セルが %d 個あります（passes=%s）",
                len(report.uncovered),
                ",".join(self.config.passes),
            )
        return self.placements

    def geometry(self) -> list[Placement]:
        """色を除いた配置列を返す。"""
        return [p.placement for p in self.placements]

    def coverage(self) -> CoverageReport:
        return coverage_report(self.num_rows, self.num_cols, self.geometry())

    def layers(self, mode: str | None = None) -> list[SceneLayer]:
        """描画レイヤ列を返す。

        Parameters
        ----------
        mode : str or None, optional
            `"flat"` または `"extruded"`。None の場合は `config.render_mode`。
        """
        cfg = self.config
        mode_s = cfg.render_mode if mode is None else str(mode)
        if mode_s == "flat":
            layers = flat_layers(
                self.placements, cfg.cell_size, self.palette, outline_width=cfg.outline_width
            )
            if cfg.guideline_width > 0:
                layers.append(
                    guideline_layer(
                        self.num_rows,
                        self.num_cols,
                        cfg.cell_size,
                        colour=self.palette.guidelines,
                        thickness=cfg.guideline_width,
                    )
                )
            return layers
        if mode_s == "extruded":
            return extruded_layers(
                self.placements,
                cfg.cell_size,
                self.palette,
                canvas_size=cfg.canvas_size,
                gap=cfg.gap,
                height_cells=cfg.height_cells,
                outline_width=min(cfg.outline_width, 1.0),
            )
        raise ValueError(f"未対応の描画モード: {mode!r}")

    def export(self, path: str | Path, *, mode: str | None = None) -> Path:
        """現在の配置を `.svg` または `.png` として保存する。"""
        out = export_image(
            self.layers(mode),
            path,
            canvas_size=self.config.canvas_size,
            background_color=hex_to_rgb01(self.palette.background),
            png_scale=self.config.png_scale,
        )
        _logger.info("exported %d placements to %s", len(self.placements), out)
        return out


__all__ = ["Sketch"]
