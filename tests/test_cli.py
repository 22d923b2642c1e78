"""Smoke tests for the command line interface."""
from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

import cli
from main import parse_arguments


def _write_png(path, array) -> str:
    Image.fromarray(array).save(path)
    return str(path)


@pytest.fixture
def solid_png(tmp_path):
    array = np.zeros((64, 64, 3), dtype=np.uint8)
    array[...] = (120, 80, 200)
    return _write_png(tmp_path / "solid.png", array)


@pytest.fixture
def noise_png(tmp_path):
    rng = np.random.default_rng(1)
    return _write_png(tmp_path / "noise.png", rng.integers(0, 256, size=(80, 96, 3), dtype=np.uint8))


def test_parse_arguments_analyze() -> None:
    args = parse_arguments(["analyze", "-i", "photo.png", "--no-dampening", "--json"])
    assert args.command == "analyze"
    assert args.input == "photo.png"
    assert args.no_dampening and args.json
    assert args.model is None


def test_analyze_command(solid_png, capsys) -> None:
    assert cli.main(["analyze", "-i", solid_png, "-v"]) == 0
    out = capsys.readouterr().out
    assert "Score  : 49.0 / 100" in out
    assert "Level  : LOW" in out
    assert "Almost perfect symmetry (rare in natural photos)" in out


def test_analyze_json(solid_png, capsys) -> None:
    assert cli.main(["analyze", "-i", solid_png, "--json"]) == 0
    out = capsys.readouterr().out
    payload = json.loads(out)

    assert set(payload) == {"score", "analysis", "indicators", "details", "metadata"}
    assert payload["analysis"]["colors"]["uniqueColors"] == 1


def test_analyze_json_stdout_is_one_document(solid_png, tmp_path) -> None:
    script = Path(cli.__file__).resolve().parent / "main.py"
    completed = subprocess.run(
        [sys.executable, str(script), "analyze", "-i", solid_png, "--json"],
        capture_output=True,
        text=True,
        cwd=tmp_path,
        check=True,
    )

    payload = json.loads(completed.stdout)
    assert payload["score"] == pytest.approx(49.0)
    # log records go to stderr
    assert "[Analyze Image] Started" in completed.stderr


def test_analyze_missing_file(tmp_path, capsys) -> None:
    assert cli.main(["analyze", "-i", str(tmp_path / "missing.png")]) == 1
    assert "Error:" in capsys.readouterr().out


def test_analyze_missing_model(solid_png, tmp_path) -> None:
    assert cli.main(["analyze", "-i", solid_png, "--model", str(tmp_path / "none.json")]) == 1


def test_train_then_analyze_with_model(solid_png, noise_png, tmp_path, capsys) -> None:
    model = tmp_path / "models" / "model.json"
    assert cli.main(["train", "--ai", solid_png, "--real", noise_png, "-o", str(model)]) == 0

    payload = json.loads(model.read_text(encoding="utf-8"))
    assert payload["trainingStats"]["aiImagesCount"] == 1
    assert payload["trainingStats"]["realImagesCount"] == 1

    assert cli.main(["analyze", "-i", noise_png, "--model", str(model)]) == 0
    assert "Score  :" in capsys.readouterr().out


def test_corrupt_model_is_reported(solid_png, tmp_path, capsys) -> None:
    model = tmp_path / "model.json"
    model.write_text("{broken", encoding="utf-8")
    assert cli.main(["analyze", "-i", solid_png, "--model", str(model)]) == 1
    assert "Model loading error" in capsys.readouterr().out


def test_blocks_command(solid_png, capsys) -> None:
    assert cli.main(["blocks", "-i", solid_png]) == 0
    out = capsys.readouterr().out
    assert "Repeated tiles  : 9 tiles" in out


@pytest.mark.parametrize("score, level", [(10, "LOW"), (50, "MEDIUM"), (69.9, "MEDIUM"), (70, "HIGH")])
def test_score_level(score, level) -> None:
    assert cli.score_level(score) == level
