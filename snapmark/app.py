"""
SnapMark - annotate a captured image and send it on.

This is the main entry point for the application.
Run with: python -m snapmark.app IMAGE [--crop x,y,w,h[,dpr]]
"""

import argparse
import signal
import sys
from pathlib import Path
from typing import List, Optional

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import QApplication

from snapmark import __version__
from snapmark.core.app_core import AppCore
from snapmark.editor.coordinates import CropRegion
from snapmark.services.logging_service import get_logger, setup_logging

# Global app reference for signal handlers
_app: Optional[QApplication] = None
_should_quit = False


def parse_crop(value: str) -> CropRegion:
    """Parse ``x,y,w,h`` or ``x,y,w,h,dpr`` into a CropRegion."""
    parts = [p.strip() for p in value.split(",")]
    if len(parts) not in (4, 5):
        raise argparse.ArgumentTypeError(
            f"Crop must be x,y,w,h or x,y,w,h,dpr: {value!r}"
        )
    try:
        numbers = [float(p) for p in parts]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Crop values must be numbers: {value!r}") from None

    x, y, width, height = numbers[:4]
    dpr = numbers[4] if len(numbers) == 5 else 1.0
    if width <= 0 or height <= 0 or dpr <= 0:
        raise argparse.ArgumentTypeError(f"Crop size and ratio must be positive: {value!r}")
    return CropRegion(x, y, width, height, dpr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snapmark",
        description="Annotate an image with rectangles, arrows and text labels.",
    )
    parser.add_argument("image", help="Image file or data: URL to annotate")
    parser.add_argument(
        "--crop",
        type=parse_crop,
        help="Crop region in display pixels: x,y,w,h[,device_pixel_ratio]",
    )
    parser.add_argument("--output-dir", type=Path, help="Folder for sent snapshots")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def cleanup_and_quit(signum, frame):
    """Handle termination signals."""
    global _should_quit
    _should_quit = True


def check_for_quit():
    """Timer callback to check if we should quit."""
    if _should_quit and _app:
        get_logger(__name__).info("Signal received, quitting...")
        _app.quit()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for SnapMark application.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    global _app

    args = build_parser().parse_args(argv)

    # Initialize basic logging first to catch early errors
    setup_logging("DEBUG" if args.debug else "INFO")
    logger = get_logger(__name__)

    try:
        logger.info("Starting SnapMark...")

        _app = QApplication.instance() or QApplication(sys.argv[:1])
        _app.setApplicationName("SnapMark")
        _app.setApplicationVersion(__version__)

        signal.signal(signal.SIGINT, cleanup_and_quit)
        signal.signal(signal.SIGTERM, cleanup_and_quit)

        # Qt event loop blocks Python signals, so poll for them
        quit_timer = QTimer()
        quit_timer.timeout.connect(check_for_quit)
        quit_timer.start(100)

        core = AppCore(_app, output_dir=args.output_dir, debug=args.debug)
        if not core.open(args.image, args.crop):
            return 1

        exit_code = _app.exec()
        logger.info(f"SnapMark exiting with code {exit_code}")
        return exit_code

    except Exception as e:
        logger.critical(f"Fatal error during startup: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
