"""Print the dominant color(s) of an image as ``#RRGGBB`` lines."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from PIL import Image

from dominantcolor import find, find_n, hex_string

logger = logging.getLogger(__name__)


def _cluster_count(value: str) -> int:
    try:
        n = int(value, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number {value!r}") from None
    if n < 0:
        raise argparse.ArgumentTypeError(f"number of colors must be non-negative, got {n}")
    return n


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dominantcolor",
        description="Find the dominant color of an image, or its N most dominant colors.",
    )
    parser.add_argument("image", help="path to the image file")
    parser.add_argument(
        "-n",
        "--number",
        type=_cluster_count,
        default=None,
        metavar="N",
        help="print up to N dominant colors instead of the single best one",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log clustering details")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        with Image.open(args.image) as source:
            image = source.convert("RGBA")
    except (OSError, Image.DecompressionBombError) as e:
        parser.exit(1, f"{parser.prog}: error: failed to load image {args.image!r}: {e}\n")

    if args.number is None:
        colors = [find(image)]
    else:
        colors = find_n(image, args.number)

    logger.debug("found %d colors in %s", len(colors), args.image)
    for color in colors:
        print(hex_string(color))
    return 0


if __name__ == "__main__":
    sys.exit(main())
