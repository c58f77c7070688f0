from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from lfmatch.api.record_io import load_correspondence_record
from lfmatch.cli.main import main


def _write_lightfield(root: Path, *, size: int = 40) -> None:
    """3x3 camera grid imaging a fronto-parallel textured plane (1 px disparity per unit offset)."""
    root.mkdir(parents=True, exist_ok=True)
    base = np.random.default_rng(7).integers(0, 256, size=(size + 8, size + 8), dtype=np.uint8)
    for row in range(3):
        for col in range(3):
            x, y = float(col - 1), float(row - 1)
            crop = base[4 + row - 1 : 4 + row - 1 + size, 4 + col - 1 : 4 + col - 1 + size]
            Image.fromarray(np.ascontiguousarray(crop)).save(root / f"out_{row:02d}_{col:02d}_{y:.6f}_{x:.6f}_.png")


@pytest.mark.integration
def test_cli_find_correspondences(tmp_path: Path, capsys) -> None:
    lf = tmp_path / "lf"
    _write_lightfield(lf)
    out = tmp_path / "corr.json"
    trace = tmp_path / "trace.json"

    rc = main(
        [
            "find-correspondences",
            str(lf),
            "--mode",
            "L",
            "--radius",
            "2",
            "--workers",
            "2",
            "--out",
            str(out),
            "--trace-json",
            str(trace),
        ]
    )
    assert rc == 0

    record = load_correspondence_record(out)
    assert record.reference_view_index == 4
    assert record.reference_pixel == (20.0, 20.0)
    assert len(record.results) == 8
    assert all(r.status == "match" for r in record.results)
    # Every view sees the reference pixel's texture one pixel along its search line.
    for r in record.results:
        assert r.best.score == 0.0
        ex, ey = 20 + round(r.step[0]), 20 + round(r.step[1])
        assert r.best.position == (ex, ey)

    sampled = json.loads(trace.read_text(encoding="utf-8"))
    assert sampled["views"]["4"]["is_reference"] is True
    assert "Wrote" in capsys.readouterr().out


def test_cli_center_view_and_validate(tmp_path: Path, capsys) -> None:
    lf = tmp_path / "lf"
    _write_lightfield(lf, size=16)
    assert main(["validate-lightfield", str(lf)]) == 0
    assert "9 views, 16x16x3" in capsys.readouterr().out
    assert main(["center-view", str(lf)]) == 0
    assert "closest = view 4" in capsys.readouterr().out


def test_cli_reports_fatal_reference_pixel(tmp_path: Path, caplog) -> None:
    lf = tmp_path / "lf"
    _write_lightfield(lf, size=16)
    with caplog.at_level("ERROR"):
        assert main(["find-correspondences", str(lf), "--x", "0", "--y", "0", "--radius", "2"]) == 2
    errors = [r for r in caplog.records if r.levelname == "ERROR"]
    assert [r.name for r in errors] == ["lfmatch.cli.main"]
    assert "OutOfBounds" in errors[0].getMessage()
