"""
どこで: `src/blockgrid/cli.py`。
何を: 設定を読み込み、不規則グリッドを生成して SVG/PNG に書き出すコマンドラインを提供する。
なぜ: ウィンドウを立ち上げずに seed・パス構成・描画モードを変えて出力を反復できるようにするため。
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from blockgrid.core.errors import InvalidArgument
from blockgrid.core.runtime_config import runtime_config, set_config_path
from blockgrid.sketch import Sketch

_logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="blockgrid",
        description="不規則グリッドを生成して SVG/PNG に書き出す。",
    )
    p.add_argument("--config", default=None, help="config.yaml のパス（同梱デフォルトを上書き）")
    p.add_argument("--seed", type=int, default=None, help="乱数 seed（未指定なら config の値）")
    p.add_argument(
        "--mode",
        choices=("flat", "extruded"),
        default=None,
        help="描画モード（未指定なら config の render.mode）",
    )
    p.add_argument(
        "--passes",
        default=None,
        help="形状ポリシー名をカンマ区切りで指定（例: mixed,unit）",
    )
    p.add_argument(
        "--out",
        default=None,
        help="出力パス（.svg / .png）。未指定なら {output_dir}/svg/blockgrid_<時刻>.svg",
    )
    p.add_argument(
        "--log-level",
        type=str.upper,
        choices=_LOG_LEVELS,
        default="INFO",
        help="logging レベル",
    )
    return p.parse_args(argv)


def _default_out_path(output_dir: Path, seed: int | None) -> Path:
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    suffix = f"_s{seed}" if seed is not None else ""
    return output_dir / "svg" / f"blockgrid_{stamp}{suffix}.svg"


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=args.log_level)

    try:
        if args.config is not None:
            set_config_path(args.config)
        cfg = runtime_config()
        if args.passes is not None:
            passes = tuple(s.strip() for s in str(args.passes).split(",") if s.strip())
            cfg = replace(cfg, passes=passes)

        seed = args.seed if args.seed is not None else cfg.seed
        sketch = Sketch(cfg, seed=seed)
        out = Path(args.out) if args.out else _default_out_path(cfg.output_dir, seed)
        sketch.export(out, mode=args.mode)
    except (InvalidArgument, FileNotFoundError, RuntimeError) as exc:
        _logger.error("%s", exc)
        return 2

    report = sketch.coverage()
    _logger.info(
        "grid=%dx%d placements=%d covered=%d/%d",
        sketch.num_cols,
        sketch.num_rows,
        len(sketch.placements),
        report.covered_cells,
        report.total_cells,
    )
    return 0


__all__ = ["main"]
