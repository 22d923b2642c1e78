"""Command line interface for PIXELSCOPE.

This module implements the command dispatcher used by :mod:`main`: a
top-level ``pixelscope`` command with sub-commands for analysing an image,
training a model from labelled samples and inspecting block-level findings.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from config import APP_NAME, APP_VERSION, SCORE_LEVELS
from detection import AIDetector, DetectorError, PixelBuffer, ValidationError
from detection.blocks import jpeg_block_grid, repeated_blocks
from utils.logger import setup_logger
from utils.metadata import read_exif
from utils.validators import validate_image_path

logger = setup_logger(__name__)


class CLIError(RuntimeError):
    """Custom error raised for recoverable CLI failures."""


def _ensure_image(path: Path, description: str) -> Path:
    check = validate_image_path(path)
    if not check.valid:
        raise CLIError(f"{description}: {check.message} ({path})")
    return path


def _load_buffer(path: Path) -> PixelBuffer:
    try:
        return PixelBuffer.open(path)
    except OSError as exc:
        raise CLIError(f"Cannot decode image {path}: {exc}") from exc


def score_level(score: float) -> str:
    if score >= SCORE_LEVELS["high"]:
        return "HIGH"
    if score >= SCORE_LEVELS["medium"]:
        return "MEDIUM"
    return "LOW"


class DetectorCLI:
    """CLI dispatcher for PIXELSCOPE."""

    def __init__(self, args) -> None:
        self.args = args
        self.command = getattr(args, "command", None)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    def run(self) -> bool:
        try:
            if self.command == "analyze":
                self._handle_analyze()
            elif self.command == "train":
                self._handle_train()
            elif self.command == "blocks":
                self._handle_blocks()
            else:
                raise CLIError("No command specified. Use --help for usage information.")
        except (CLIError, DetectorError, ValidationError) as exc:
            logger.error("CLI error: %s", exc)
            print(f"Error: {exc}")
            return False
        except KeyboardInterrupt:
            print("Operation cancelled by user.")
            return False

        return True

    def _detector(self, model_path: Optional[str], dampening: Optional[bool] = None) -> AIDetector:
        detector = AIDetector(dampening=dampening)
        if model_path:
            path = Path(model_path)
            if not path.exists():
                raise CLIError(f"Model file not found: {path}")
            stats = detector.import_model(path.read_text(encoding="utf-8"))
            logger.info(
                "Loaded model %s (ai=%d, real=%d)",
                path,
                stats.ai_images_count,
                stats.real_images_count,
            )
        return detector

    # ------------------------------------------------------------------
    # Analyze command
    # ------------------------------------------------------------------
    def _handle_analyze(self) -> None:
        args = self.args

        target = _ensure_image(Path(args.input), "Input file")
        detector = self._detector(
            getattr(args, "model", None),
            dampening=False if getattr(args, "no_dampening", False) else None,
        )
        buffer = _load_buffer(target)
        result = detector.analyze(buffer, metadata=read_exif(target))

        if getattr(args, "json", False):
            print(json.dumps(result.to_dict(), indent=2))
            return

        print(f"\n{APP_NAME} v{APP_VERSION} - Analyze")
        print(f"Target : {target} ({buffer.width}x{buffer.height})")
        print(f"Score  : {result.score:.1f} / 100")
        print(f"Level  : {score_level(result.score)}")

        if result.indicators:
            print("\nDetected Indicators:")
            for indicator in result.indicators:
                print(f"  * {indicator}")
        else:
            print("\nNo significant indicators detected")

        if result.details:
            print("\nContributions:")
            for name, value in result.details.items():
                print(f"  - {name}: {value:.2f}")

        if args.verbose:
            print("\nFeatures:")
            for category, metrics in result.features.items():
                values = ", ".join(f"{m}={v:.4f}" for m, v in metrics.items())
                print(f"  - {category}: {values}")

        if result.metadata:
            print("\nEXIF Metadata:")
            for key, value in result.metadata.items():
                print(f"  - {key}: {value}")

    # ------------------------------------------------------------------
    # Train command
    # ------------------------------------------------------------------
    def _load_samples(self, paths: Iterable[str], label: str) -> List[PixelBuffer]:
        buffers = []
        for raw in paths:
            path = _ensure_image(Path(raw), f"{label} sample")
            buffers.append(_load_buffer(path))
        return buffers

    def _handle_train(self) -> None:
        args = self.args

        detector = self._detector(getattr(args, "model", None))
        ai_buffers = self._load_samples(args.ai, "ai")
        real_buffers = self._load_samples(args.real, "real")

        detector.train(ai_buffers, "ai")
        detector.train(real_buffers, "real")

        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(detector.export_model(), encoding="utf-8")

        print(f"\n{APP_NAME} v{APP_VERSION} - Train")
        print(f"AI samples   : {len(ai_buffers)}")
        print(f"Real samples : {len(real_buffers)}")
        print(f"Model        : {output}")
        print("\nThresholds:")
        for category, metrics in detector.thresholds.items():
            values = ", ".join(f"{m}={v:.4g}" for m, v in metrics.items())
            print(f"  - {category}: {values}")

    # ------------------------------------------------------------------
    # Blocks command
    # ------------------------------------------------------------------
    def _handle_blocks(self) -> None:
        args = self.args

        target = _ensure_image(Path(args.input), "Input file")
        buffer = _load_buffer(target)
        grid = jpeg_block_grid(buffer)
        repeated = repeated_blocks(buffer)

        print(f"\n{APP_NAME} v{APP_VERSION} - Blocks")
        print(f"Target          : {target} ({buffer.width}x{buffer.height})")
        print(f"JPEG boundaries : {len(grid)} blocks")
        print(f"Repeated tiles  : {len(repeated)} tiles")


def main(argv: Optional[Iterable[str]] = None) -> int:
    """Entry point used by unit tests."""

    from main import parse_arguments  # Lazy import to avoid circular dependency.

    args = parse_arguments(list(argv) if argv is not None else None)
    cli = DetectorCLI(args)
    return 0 if cli.run() else 1


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    sys.exit(main(sys.argv[1:]))
