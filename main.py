"""
pixelfont - Entry Point

Command line front end for calibrating pixel fonts and reading text from
captured images.

Example:
    python main.py calibrate ref.png --chars "ABC" --basey 8 -o font.json
    python main.py read capture.png --font font.json --color 255 255 0 --x 40 --y 12
    python main.py show-font font.json -o font.png --zoom 4
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import List, Optional

from pixelfont.ocr import (
    PixelBuffer,
    OCRError,
    ScoreRecorder,
    create_engine,
    generate_font,
    load_font,
    render_font,
    save_debug_image,
    save_font,
    unblend_known_bg,
    unblend_trans,
)
from pixelfont.ocr.debug import zoom_image
from pixelfont.settings import load_settings, save_settings


logger = logging.getLogger(__name__)

LOG_FILE = "pixelfont.log"

# Candidates logged per read when score tracking is on
TRACKED_SCORES = 5


def setup_logging(debug: bool) -> None:
    """Configure logging - output to console, and to a file in debug mode."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if debug:
        handlers.append(logging.FileHandler(LOG_FILE, mode='w', encoding='utf-8'))

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=handlers,
        force=True,
    )


def cmd_calibrate(args, settings) -> int:
    """Unblend a reference image and write the font definition."""
    image = PixelBuffer.load(args.image)
    font_color = tuple(args.font_color)

    if args.unblend == "knownbg":
        if not args.background:
            logger.error("--background is required with --unblend knownbg")
            return 2
        unblended = unblend_known_bg(image, PixelBuffer.load(args.background),
                                     args.shadow, font_color)
    elif args.unblend == "trans":
        unblended = unblend_trans(image, args.shadow, font_color)
    else:
        unblended = image

    if args.save_unblended:
        unblended.save(args.save_unblended)
        logger.info(f"Unblended image saved: {args.save_unblended}")

    threshold = args.threshold if args.threshold is not None else settings["threshold"]
    spacewidth = args.spacewidth if args.spacewidth is not None else settings["spacewidth"]

    font = generate_font(
        unblended,
        args.chars,
        seconds=args.secondary,
        bonuses=dict(args.bonus or []),
        basey=args.basey,
        spacewidth=spacewidth,
        threshold=threshold,
        shadow=args.shadow,
    )
    save_font(font, args.output)
    logger.info(f"Font saved: {args.output} ({font.characters!r})")

    if args.save_settings:
        settings.update(font_path=str(args.output), spacewidth=spacewidth, threshold=threshold)
        save_settings(settings, args.settings)
        logger.info("Font path, space width and threshold stored as defaults")
    return 0


def cmd_read(args, settings) -> int:
    """Read one line of text and print it."""
    font_path = args.font or settings.get("font_path")
    if not font_path:
        logger.error("No font given (use --font or set font_path in settings)")
        return 2

    collector = None
    if args.track_scores or settings.get("track_scores"):
        collector = ScoreRecorder(log_top=TRACKED_SCORES)

    engine = create_engine("font", font_path=font_path, collector=collector)
    image = PixelBuffer.load(args.image)
    colors = [tuple(c) for c in args.color]

    if args.exact:
        result = engine.read_exact(image, colors, args.x, args.y,
                                   forward=True, backward=args.backward)
    else:
        result = engine.process(image, colors, args.x, args.y, args.width, args.height)

    if args.debug_image is not None:
        saved = save_debug_image(image, result, args.debug_image or None, zoom=args.zoom)
        logger.info(f"Debug image saved: {saved}")

    if collector is not None:
        logger.info(f"Recorded scores at {len(collector)} positions")

    print(result.text)
    return 0 if result.found else 1


def cmd_show_font(args, settings) -> int:
    """Render a font definition to an image."""
    font = load_font(args.font)
    zoom_image(render_font(font), args.zoom).save(args.output)
    logger.info(f"Font preview saved: {args.output}")
    return 0


def _bonus(value: str):
    """Parse CHAR=SCORE."""
    char, _, score = value.rpartition("=")
    if not char:
        raise argparse.ArgumentTypeError(f"Expected CHAR=SCORE, got {value!r}")
    return char, float(score)


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="pixelfont - Pixel font OCR for blended screen captures"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging (also written to pixelfont.log)"
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Settings file (default: pixelfont.json)"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    cal = sub.add_parser("calibrate", help="Build a font definition from a reference image")
    cal.add_argument("image", type=Path, help="Reference image with a marker row at the bottom")
    cal.add_argument("--chars", required=True, help="Characters in the image, left to right")
    cal.add_argument("--secondary", default="", help="Characters only read as a last resort")
    cal.add_argument("--bonus", type=_bonus, action="append", metavar="CHAR=SCORE",
                     help="Extra score for a character (repeatable)")
    cal.add_argument("--basey", type=int, required=True, help="Baseline row in the image")
    cal.add_argument("--spacewidth", type=int, default=None, help="Width of a space in pixels")
    cal.add_argument("--threshold", type=float, default=None,
                     help="Minimal coverage (0-1) of a template pixel")
    cal.add_argument("--shadow", action="store_true", help="Font has a black shadow")
    cal.add_argument("--font-color", type=int, nargs=3, default=[255, 255, 255],
                     metavar=("R", "G", "B"), help="Glyph color of the reference image")
    cal.add_argument("--unblend", choices=["none", "trans", "knownbg"], default="trans",
                     help="Preprocessing of the reference image (default: trans)")
    cal.add_argument("--background", type=Path, help="Background image for --unblend knownbg")
    cal.add_argument("--save-unblended", type=Path, help="Also save the unblended image")
    cal.add_argument("--save-settings", action="store_true",
                     help="Store font path, space width and threshold in the settings file")
    cal.add_argument("-o", "--output", type=Path, required=True, help="Font JSON to write")
    cal.set_defaults(func=cmd_calibrate)

    rd = sub.add_parser("read", help="Read a line of text from an image")
    rd.add_argument("image", type=Path)
    rd.add_argument("--font", type=Path, help="Font JSON (default: font_path setting)")
    rd.add_argument("--color", type=int, nargs=3, action="append", required=True,
                    metavar=("R", "G", "B"), help="Text color (repeatable)")
    rd.add_argument("--x", type=int, required=True)
    rd.add_argument("--y", type=int, required=True, help="Baseline row")
    rd.add_argument("--width", type=int, default=-1, help="Search window width")
    rd.add_argument("--height", type=int, default=-1, help="Search window height")
    rd.add_argument("--exact", action="store_true",
                    help="(x, y) is the exact start of the first character")
    rd.add_argument("--backward", action="store_true", help="With --exact, also read left of x")
    rd.add_argument("--debug-image", type=Path, nargs="?", const="",
                    help="Save an annotated image (default: timestamped file in ./debug)")
    rd.add_argument("--zoom", type=int, default=4, help="Zoom of the debug image")
    rd.add_argument("--track-scores", action="store_true",
                    help="Log the best candidate glyphs of every read")
    rd.set_defaults(func=cmd_read)

    show = sub.add_parser("show-font", help="Render a font definition to an image")
    show.add_argument("font", type=Path)
    show.add_argument("-o", "--output", type=Path, required=True)
    show.add_argument("--zoom", type=int, default=4)
    show.set_defaults(func=cmd_show_font)

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Run one pixelfont command."""
    args = parse_args(argv)
    settings = load_settings(args.settings)
    setup_logging(args.debug or settings.get("debug_enabled", False))

    try:
        return args.func(args, settings)
    except (OCRError, FileNotFoundError) as e:
        logger.error(str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())
