"""Entry point module for the PIXELSCOPE application."""

from __future__ import annotations

import argparse
import sys
from typing import Iterable, Optional

from config import APP_DESCRIPTION, APP_NAME, APP_VERSION
from utils.logger import setup_logger
from utils.validators import supported_extensions

logger = setup_logger(__name__)


def parse_arguments(argv: Optional[Iterable[str]] = None):
    """Return parsed command line arguments."""

    parser = argparse.ArgumentParser(
        prog="pixelscope",
        description=f"{APP_DESCRIPTION} v{APP_VERSION}",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"{APP_NAME} v{APP_VERSION}")

    subparsers = parser.add_subparsers(dest="command", metavar="command")

    # ------------------------------------------------------------------
    # Analyze command
    # ------------------------------------------------------------------
    analyze = subparsers.add_parser(
        "analyze",
        help="Estimate whether an image is AI-generated",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    analyze.add_argument(
        "-i",
        "--input",
        required=True,
        help=f"Image to analyse ({', '.join(supported_extensions())})",
    )
    analyze.add_argument("--model", help="Exported model (thresholds) to load first")
    analyze.add_argument(
        "--no-dampening",
        action="store_true",
        help="Disable the event-photo score dampening rule",
    )
    analyze.add_argument("--json", action="store_true", help="Print the full result as JSON")
    analyze.add_argument("-v", "--verbose", action="store_true", help="Show per-feature values")

    # ------------------------------------------------------------------
    # Train command
    # ------------------------------------------------------------------
    train = subparsers.add_parser(
        "train",
        help="Calibrate thresholds from labelled images and export the model",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    train.add_argument("--ai", nargs="+", required=True, help="AI-generated sample images")
    train.add_argument("--real", nargs="+", required=True, help="Real photo sample images")
    train.add_argument("-o", "--output", required=True, help="Where to write the exported model")
    train.add_argument("--model", help="Exported model to start from")

    # ------------------------------------------------------------------
    # Blocks command
    # ------------------------------------------------------------------
    blocks = subparsers.add_parser(
        "blocks",
        help="Report block-level JPEG grid and repeated-tile findings",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    blocks.add_argument("-i", "--input", required=True, help="Image to inspect")

    return parser.parse_args(args=list(argv) if argv is not None else None)


def run_cli(args) -> None:
    """Execute a CLI command."""

    try:
        from cli import DetectorCLI

        cli = DetectorCLI(args)
        success = cli.run()
        sys.exit(0 if success else 1)
    except ImportError as exc:
        logger.error("Failed to import CLI modules: %s", exc)
        print(f"Error: unable to load CLI modules - {exc}")
        sys.exit(1)


def main(argv: Optional[Iterable[str]] = None) -> None:
    """Main entry point used by ``python -m`` and the console script."""

    args = parse_arguments(argv)
    if getattr(args, "command", None) is None:
        parse_arguments(["--help"])
        return

    run_cli(args)


if __name__ == "__main__":  # pragma: no cover - script entry point
    main()
