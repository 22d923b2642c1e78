"""Tests for validator helpers."""
from __future__ import annotations

from pathlib import Path

import pytest

from conftest import make_solid
from detection.pixel_buffer import PixelBuffer
from utils.validators import ValidationError, ensure_valid_buffer, validate_buffer, validate_image_path


def test_validate_buffer_accepts_minimum_size() -> None:
    result = validate_buffer(make_solid(50, 50))
    assert result.valid
    assert result.message == "OK"


def test_validate_buffer_rejects_small_dimensions() -> None:
    result = validate_buffer(make_solid(49, 64))
    assert not result.valid
    assert "too small" in result.message


def test_validate_buffer_rejects_large_dimensions() -> None:
    buffer = PixelBuffer(width=4097, height=50, samples=b"\x00" * (4097 * 50 * 4))
    result = validate_buffer(buffer)
    assert not result.valid
    assert "too large" in result.message


def test_validate_buffer_rejects_length_mismatch() -> None:
    buffer = PixelBuffer(width=60, height=60, samples=b"\x00" * (60 * 60 * 4 - 1))
    with pytest.raises(ValidationError) as excinfo:
        ensure_valid_buffer(buffer)
    assert "Corrupted" in excinfo.value.reason


@pytest.mark.parametrize("candidate", [None, object(), PixelBuffer(width=0, height=60, samples=b"")])
def test_validate_buffer_rejects_missing_fields(candidate) -> None:
    with pytest.raises(ValidationError):
        ensure_valid_buffer(candidate)


def test_validation_error_is_value_error() -> None:
    assert issubclass(ValidationError, ValueError)


def test_validate_image_path(tmp_path: Path) -> None:
    supported = tmp_path / "sample.png"
    supported.write_bytes(b"data")
    assert validate_image_path(supported).valid

    unknown = tmp_path / "sample.xyz"
    unknown.write_bytes(b"data")
    result = validate_image_path(unknown)
    assert not result.valid
    assert "Unsupported" in result.message

    assert not validate_image_path(tmp_path / "missing.png").valid
