"""Validation helpers shared between the CLI and the detection engine."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from config import DETECTION_SETTINGS, SUPPORTED_IMAGE_FORMATS

IMAGE_EXTENSIONS = set(SUPPORTED_IMAGE_FORMATS)


class ValidationError(ValueError):
    """Raised when an input cannot be analysed."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True)
class ValidationResult:
    """Simple structure describing a validation outcome."""

    valid: bool
    message: str = ""


def _ensure_path(path: Path | str) -> Path:
    if isinstance(path, Path):
        return path
    return Path(path)


def _check_buffer(buffer: Any) -> str | None:
    if buffer is None:
        return "Invalid image data: no buffer supplied"

    width = getattr(buffer, "width", None)
    height = getattr(buffer, "height", None)
    samples = getattr(buffer, "samples", None)
    if not width or not height or samples is None:
        return "Invalid image data: width, height and samples are required"
    if isinstance(width, bool) or isinstance(height, bool):
        return "Invalid image data: dimensions must be integers"
    if not isinstance(width, int) or not isinstance(height, int):
        return "Invalid image data: dimensions must be integers"

    low = DETECTION_SETTINGS["min_dimension"]
    high = DETECTION_SETTINGS["max_dimension"]
    if width > high or height > high:
        return f"Image dimensions too large. Maximum: {high}px"
    if width < low or height < low:
        return f"Image dimensions too small. Minimum: {low}px"

    expected = width * height * 4
    if len(samples) != expected:
        return f"Corrupted image data: expected {expected} bytes, got {len(samples)}"
    return None


def validate_buffer(buffer: Any) -> ValidationResult:
    """Check whether *buffer* can be handed to the feature extractor."""

    reason = _check_buffer(buffer)
    if reason is not None:
        return ValidationResult(False, reason)
    return ValidationResult(True, "OK")


def ensure_valid_buffer(buffer: Any) -> None:
    """Raise :class:`ValidationError` naming the first violated constraint."""

    reason = _check_buffer(buffer)
    if reason is not None:
        raise ValidationError(reason)


def validate_image_path(path: Path | str) -> ValidationResult:
    """Check whether *path* refers to a supported image file."""

    candidate = _ensure_path(path)
    if not candidate.exists():
        return ValidationResult(False, "File not found")

    suffix = candidate.suffix.lower()
    if suffix not in IMAGE_EXTENSIONS:
        return ValidationResult(False, f"Unsupported file type: {suffix or 'unknown'}")

    return ValidationResult(True, "OK")


def supported_extensions() -> Iterable[str]:
    """Return the collection of supported image file extensions."""

    return sorted(IMAGE_EXTENSIONS)


__all__ = [
    "ValidationError",
    "ValidationResult",
    "ensure_valid_buffer",
    "supported_extensions",
    "validate_buffer",
    "validate_image_path",
]
