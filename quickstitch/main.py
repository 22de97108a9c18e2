"""
Command-line entry point.

Quickly stitch raws: a list of images, or a directory of images given with
--dir, is stitched into taller images cut only at uniform rows.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from quickstitch.config import settings
from quickstitch.stitching import (
    ImageFormat,
    OutputFormat,
    Sort,
    SplitpointKind,
    StitchError,
    Stitcher,
    sort_paths,
)
from quickstitch.stitching.selector import validate_parameters

logger = logging.getLogger(__name__)

# Exit codes
EXIT_OK = 0
EXIT_EXPORT_FAILED = 1
EXIT_ERROR = 2

SORT_ALIASES = {
    "default": None,
    "natural": Sort.NATURAL,
    "n": Sort.NATURAL,
    "logical": Sort.LOGICAL,
    "l": Sort.LOGICAL,
}


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line argument parser, with defaults from settings."""
    parser = argparse.ArgumentParser(
        prog="quickstitch",
        description=(
            "Quickly stitch raws. A list of images can be provided as input, "
            "or --dir can be used instead to stitch a directory of images."
        ),
    )
    parser.add_argument("images", nargs="*", type=Path, help="The images to stitch.")
    parser.add_argument("-d", "--dir", type=Path, help="A directory of images to stitch.")
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=settings.export.output_dir,
        help="The output directory to place the stitched images in.",
    )
    parser.add_argument(
        "-s", "--sort",
        choices=list(SORT_ALIASES),
        default="default",
        help=(
            'Sorting applied before stitching. Given ["9.jpeg", "10.jpeg", "8.jpeg", "11.jpeg"], '
            'logical gives ["10.jpeg", "11.jpeg", "8.jpeg", "9.jpeg"] and natural gives '
            '["8.jpeg", "9.jpeg", "10.jpeg", "11.jpeg"]. "default" is natural for --dir and '
            "leaves an explicit list of images unsorted."
        ),
    )
    parser.add_argument(
        "-y", "--height",
        type=int,
        default=settings.stitching.max_height,
        help="The maximum height of the stitched images.",
    )
    parser.add_argument(
        "-m", "--min-height",
        type=int,
        default=settings.stitching.min_height,
        help="The minimum height of every stitched image except the last one.",
    )
    parser.add_argument(
        "-i", "--scan-interval",
        type=int,
        default=settings.stitching.scan_interval,
        metavar="INTERVAL",
        help="Only every INTERVAL-th line of pixels is analyzed.",
    )
    parser.add_argument(
        "-t", "--sensitivity",
        type=int,
        default=settings.stitching.sensitivity,
        metavar="THRESHOLD",
        help=(
            "Value between 0 and 255. 0 lets any line be used as a splitpoint, "
            "255 only lines whose pixels all have the same value."
        ),
    )
    parser.add_argument(
        "-f", "--format",
        choices=[f.value for f in ImageFormat],
        default=settings.export.format,
        help="The file type used for exporting the stitched images.",
    )
    parser.add_argument(
        "-q", "--quality",
        type=int,
        default=settings.export.quality,
        help="JPEG quality from 1 to 100, ignored for png and webp.",
    )
    parser.add_argument(
        "-w", "--width",
        type=int,
        default=settings.input.target_width,
        help="Rescale every image to this width. By default all images must share one width.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=not settings.input.ignore_unloadable,
        help="Abort when an image can't be loaded instead of skipping it.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.export.debug,
        help="Draw the chosen and skipped splitpoints on the output images.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=settings.debug,
        help="Enable debug logging.",
    )
    return parser


def run(args: argparse.Namespace) -> int:
    """Run a stitch with parsed arguments and return the exit code."""
    try:
        # Reject bad parameters before any image is decoded
        validate_parameters(args.height, args.min_height, args.scan_interval, args.sensitivity)
        output_format = OutputFormat(ImageFormat(args.format), args.quality)

        stitcher = Stitcher(workers=settings.workers)
        sort = SORT_ALIASES[args.sort]

        if args.dir is not None:
            loaded = stitcher.load_dir(
                args.dir,
                target_width=args.width,
                ignore_unloadable=not args.strict,
                sort=sort or Sort.NATURAL,
            )
        else:
            paths = sort_paths(args.images, sort) if sort else args.images
            loaded = stitcher.load(
                paths,
                target_width=args.width,
                ignore_unloadable=not args.strict,
            )

        for path in loaded.canvas.skipped:
            logger.warning(f"Skipped unloadable image: {path}")

        stitched = loaded.stitch(
            args.height,
            args.min_height,
            args.scan_interval,
            args.sensitivity,
        )

        for sp in stitched.splitpoints:
            if sp.kind == SplitpointKind.FALLBACK:
                logger.warning(f"No uniform row found, forced a cut at row {sp.offset}")

        args.output.mkdir(parents=True, exist_ok=True)
        errors = stitched.export(args.output, output_format, debug=args.debug)

    except (StitchError, OSError) as e:
        logger.error(str(e))
        return EXIT_ERROR

    for error in errors:
        logger.error(f"Export failed: {error}")

    if errors:
        return EXIT_EXPORT_FAILED

    logger.info(f"Wrote {len(stitched.segments)} images to {args.output}")
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments, configure logging and stitch."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if bool(args.images) == (args.dir is not None):
        parser.error("provide exactly one of: a list of images, --dir")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    return run(args)


if __name__ == "__main__":
    sys.exit(main())
