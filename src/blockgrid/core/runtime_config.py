# どこで: `src/blockgrid/core/runtime_config.py`。
# 何を: config.yaml による実行時設定（探索・ロード・キャッシュ）を提供する。
# なぜ: キャンバス寸法・パス構成・パレットなどをコード外から差し替えられるようにするため。

from __future__ import annotations

import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

from blockgrid.core.errors import InvalidArgument
from blockgrid.core.palette import Palette
from blockgrid.core.shape_policy import shape_policy_registry

_RENDER_MODES = ("flat", "extruded")


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """blockgrid の実行時設定。"""

    config_path: Path | None
    output_dir: Path
    canvas_size: tuple[int, int]
    cell_size: float
    seed: int | None
    passes: tuple[str, ...]
    palette_name: str
    palettes: dict[str, Palette]
    render_mode: str
    outline_width: float
    guideline_width: float
    gap: float
    height_cells: float
    height_scale_range: tuple[float, float]
    png_scale: float

    @property
    def palette(self) -> Palette:
        """`palette.name` で選ばれた Palette を返す。"""
        return self.palettes[self.palette_name]


_EXPLICIT_CONFIG_PATH: Path | None = None
_CONFIG_CACHE: RuntimeConfig | None = None


def set_config_path(path: str | Path | None) -> None:
    """以降の設定探索で使う明示 config パスを設定する。

    Notes
    -----
    `path` を None にすると明示指定を解除し、既定の探索に戻る。
    """

    global _EXPLICIT_CONFIG_PATH, _CONFIG_CACHE
    _EXPLICIT_CONFIG_PATH = None if path is None else Path(str(path)).expanduser()
    _CONFIG_CACHE = None


def _default_config_candidates() -> tuple[Path, ...]:
    return (
        Path.cwd() / ".blockgrid" / "config.yaml",
        Path.home() / ".config" / "blockgrid" / "config.yaml",
    )


def _as_optional_path(value: Any) -> Path | None:
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    return Path(os.path.expandvars(os.path.expanduser(s)))


def _as_mapping(value: Any, *, key: str) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, dict):
        return dict(value)
    raise RuntimeError(f"{key} は mapping である必要があります: got={value!r}")


def _as_number_pair(value: Any, *, key: str) -> tuple[float, float]:
    try:
        seq = list(value)
    except Exception as exc:
        raise RuntimeError(f"{key} は 2 要素の配列である必要があります: got={value!r}") from exc
    if len(seq) != 2:
        raise RuntimeError(f"{key} は 2 要素の配列である必要があります: got={value!r}")
    try:
        return float(seq[0]), float(seq[1])
    except Exception as exc:
        raise RuntimeError(f"{key} は数値の配列である必要があります: got={value!r}") from exc


def _as_positive_float(value: Any, *, key: str) -> float:
    if value is None:
        raise RuntimeError(f"{key} が未設定です（同梱 default_config.yaml を確認してください）")
    try:
        f = float(value)
    except Exception as exc:
        raise RuntimeError(f"{key} は数値である必要があります: got={value!r}") from exc
    if f <= 0:
        raise RuntimeError(f"{key} は正の値である必要があります: got={f}")
    return f


def _as_non_negative_float(value: Any, *, key: str) -> float:
    try:
        f = float(value)
    except Exception as exc:
        raise RuntimeError(f"{key} は数値である必要があります: got={value!r}") from exc
    if f < 0:
        raise RuntimeError(f"{key} は 0 以上である必要があります: got={f}")
    return f


def _as_seed(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise RuntimeError(f"packing.seed は整数か null である必要があります: got={value!r}")
    return int(value)


def _load_yaml_text(text: str, *, source: str) -> dict[str, Any]:
    import yaml  # type: ignore[import-untyped]

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise RuntimeError(f"config.yaml の読み込みに失敗しました: source={source}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RuntimeError(f"config.yaml は mapping である必要があります: source={source}")
    return dict(data)


def _load_packaged_default_config() -> dict[str, Any]:
    """同梱デフォルト config をロードして dict を返す。"""

    blob = (
        resources.files("blockgrid")
        .joinpath("resource", "default_config.yaml")
        .read_text(encoding="utf-8")
    )
    return _load_yaml_text(blob, source="blockgrid/resource/default_config.yaml")


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """mapping を再帰的に上書きマージする（列・スカラーは丸ごと置き換え）。"""
    out = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def _parse_palettes(value: Any) -> dict[str, Palette]:
    raw = _as_mapping(value, key="palettes")
    palettes: dict[str, Palette] = {}
    for name, entry in raw.items():
        try:
            palettes[str(name)] = Palette.from_mapping(
                _as_mapping(entry, key=f"palettes.{name}"), name=str(name)
            )
        except InvalidArgument as exc:
            raise RuntimeError(f"palettes.{name} が不正です: {exc}") from exc
    return palettes


def load_config(payload: dict[str, Any], *, config_path: Path | None = None) -> RuntimeConfig:
    """マージ済み payload を検証して RuntimeConfig を組み立てる。"""

    version = payload.get("version")
    if version is None:
        raise RuntimeError(
            "config.yaml の version が未設定です（同梱 default_config.yaml を確認してください）"
        )
    try:
        version_i = int(version)
    except Exception as exc:
        raise RuntimeError(f"config.yaml の version は整数である必要があります: got={version!r}") from exc
    if version_i != 1:
        raise RuntimeError(f"未対応の config.yaml version です: got={version_i}")

    paths = _as_mapping(payload.get("paths"), key="paths")
    output_dir = _as_optional_path(paths.get("output_dir"))
    if output_dir is None:
        raise RuntimeError("paths.output_dir が未設定です")

    canvas = _as_mapping(payload.get("canvas"), key="canvas")
    w, h = _as_number_pair(canvas.get("size"), key="canvas.size")
    if w <= 0 or h <= 0:
        raise RuntimeError(f"canvas.size は正の値である必要があります: got={(w, h)}")
    cell_size = _as_positive_float(canvas.get("cell_size"), key="canvas.cell_size")

    packing = _as_mapping(payload.get("packing"), key="packing")
    passes_raw = packing.get("passes")
    if passes_raw is None or isinstance(passes_raw, str):
        raise RuntimeError(f"packing.passes はポリシー名の列である必要があります: got={passes_raw!r}")
    passes = tuple(str(p) for p in passes_raw)
    unknown = [p for p in passes if p not in shape_policy_registry]
    if unknown:
        raise RuntimeError(f"packing.passes に未登録のポリシー名があります: got={unknown!r}")

    palettes = _parse_palettes(payload.get("palettes"))
    palette_section = _as_mapping(payload.get("palette"), key="palette")
    palette_name = str(palette_section.get("name", ""))
    if palette_name not in palettes:
        raise RuntimeError(
            f"palette.name が palettes に存在しません: got={palette_name!r}, known={sorted(palettes)}"
        )

    render = _as_mapping(payload.get("render"), key="render")
    render_mode = str(render.get("mode", "flat"))
    if render_mode not in _RENDER_MODES:
        raise RuntimeError(f"render.mode は {_RENDER_MODES} のいずれか: got={render_mode!r}")
    gap = _as_non_negative_float(render.get("gap", 0.0), key="render.gap")
    if gap >= cell_size:
        raise RuntimeError(f"render.gap は canvas.cell_size 未満である必要があります: got={gap}")
    low, high = _as_number_pair(render.get("height_scale_range"), key="render.height_scale_range")
    if low < 0 or high < low:
        raise RuntimeError(
            f"render.height_scale_range は 0 <= low <= high である必要があります: got={(low, high)}"
        )

    export = _as_mapping(payload.get("export"), key="export")
    png = _as_mapping(export.get("png"), key="export.png")

    return RuntimeConfig(
        config_path=config_path,
        output_dir=output_dir,
        canvas_size=(int(w), int(h)),
        cell_size=cell_size,
        seed=_as_seed(packing.get("seed")),
        passes=passes,
        palette_name=palette_name,
        palettes=palettes,
        render_mode=render_mode,
        outline_width=_as_non_negative_float(
            render.get("outline_width", 0.0), key="render.outline_width"
        ),
        guideline_width=_as_non_negative_float(
            render.get("guideline_width", 0.0), key="render.guideline_width"
        ),
        gap=gap,
        height_cells=_as_positive_float(render.get("height_cells"), key="render.height_cells"),
        height_scale_range=(low, high),
        png_scale=_as_positive_float(png.get("scale"), key="export.png.scale"),
    )


def runtime_config() -> RuntimeConfig:
    """実行時設定をロードして返す（キャッシュ）。

    上書き順（後勝ち）:
    1) 同梱 default_config.yaml
    2) `./.blockgrid/config.yaml` / `~/.config/blockgrid/config.yaml`（最初に見つかった方）
    3) `set_config_path(...)` / CLI `--config`
    """

    global _CONFIG_CACHE
    if _CONFIG_CACHE is not None:
        return _CONFIG_CACHE

    explicit_path = _EXPLICIT_CONFIG_PATH
    if explicit_path is not None and not explicit_path.is_file():
        raise FileNotFoundError(f"config.yaml が見つかりません: {explicit_path}")

    discovered_path: Path | None = None
    for p in _default_config_candidates():
        if p.is_file():
            discovered_path = p
            break

    payload = _load_packaged_default_config()
    for p in (discovered_path, explicit_path):
        if p is not None:
            override = _load_yaml_text(p.read_text(encoding="utf-8"), source=str(p))
            payload = _merge(payload, override)

    cfg = load_config(payload, config_path=explicit_path or discovered_path)
    _CONFIG_CACHE = cfg
    return cfg


__all__ = ["RuntimeConfig", "load_config", "runtime_config", "set_config_path"]
