"""PNG export（resvg 呼び出し）のテスト。実際の resvg は起動しない。"""

from __future__ import annotations

import subprocess
from pathlib import Path

import numpy as np
import pytest

from blockgrid.core.realized_geometry import RealizedGeometry
from blockgrid.export import image as image_module
from blockgrid.export.image import PngTarget, export_image, png_output_size, rasterize
from blockgrid.render.scene import SceneLayer


def _layers() -> list[SceneLayer]:
    realized = RealizedGeometry(
        coords=np.asarray([[0, 0, 0], [5, 5, 0]], dtype=np.float32),
        offsets=np.asarray([0, 2], dtype=np.int32),
    )
    return [SceneLayer(realized=realized, stroke=(0.0, 0.0, 0.0))]


def test_png_output_size() -> None:
    assert png_output_size((400, 300), 2.0) == (800, 600)
    with pytest.raises(ValueError):
        png_output_size((0, 300), 2.0)
    with pytest.raises(ValueError):
        png_output_size((400, 300), 0.0)


def test_export_image_svg_passthrough(tmp_path: Path) -> None:
    out = export_image(_layers(), tmp_path / "a.svg", canvas_size=(10, 10))
    assert out.suffix == ".svg"
    assert out.exists()


def test_export_image_png_invokes_resvg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[list[str]] = []

    def fake_run(cmd, **kwargs):
        calls.append(list(cmd))
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    monkeypatch.setattr(image_module.subprocess, "run", fake_run)

    out = export_image(
        _layers(),
        tmp_path / "a.png",
        canvas_size=(10, 20),
        background_color=(1.0, 0.0, 0.0),
        png_scale=3.0,
    )

    assert out == tmp_path / "a.png"
    assert (tmp_path / "a.svg").exists()
    assert calls == [
        [
            "resvg",
            "--width",
            "30",
            "--height",
            "60",
            "--background",
            "#FF0000",
            str(tmp_path / "a.svg"),
            str(tmp_path / "a.png"),
        ]
    ]


def test_export_image_png_reports_missing_resvg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(image_module.subprocess, "run", fake_run)

    with pytest.raises(RuntimeError):
        export_image(_layers(), tmp_path / "a.png", canvas_size=(10, 10))


def test_export_image_png_reports_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="boom")

    monkeypatch.setattr(image_module.subprocess, "run", fake_run)

    with pytest.raises(RuntimeError, match="boom"):
        export_image(_layers(), tmp_path / "a.png", canvas_size=(10, 10))


def test_export_image_rejects_unknown_suffix(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        export_image(_layers(), tmp_path / "a.jpg", canvas_size=(10, 10))


def test_unknown_suffix_writes_nothing(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        export_image(_layers(), tmp_path / "a.gif", canvas_size=(10, 10))
    assert list(tmp_path.iterdir()) == []


def test_png_target_command() -> None:
    target = PngTarget(
        svg_path=Path("in.svg"),
        png_path=Path("out.png"),
        size=(800, 600),
        background="#5A3034",
    )
    assert target.command() == [
        "resvg",
        "--width",
        "800",
        "--height",
        "600",
        "--background",
        "#5A3034",
        "in.svg",
        "out.png",
    ]


def test_rasterize_creates_parent_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        image_module.subprocess,
        "run",
        lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 0, stdout="", stderr=""),
    )
    target = PngTarget(
        svg_path=tmp_path / "a.svg",
        png_path=tmp_path / "png" / "a.png",
        size=(10, 10),
        background="#FFFFFF",
    )
    assert rasterize(target) == tmp_path / "png" / "a.png"
    assert (tmp_path / "png").is_dir()
