from __future__ import annotations

import logging

from PIL import Image

from dominantcolor._core import DEFAULT_RESIZE_TO

logger = logging.getLogger(__name__)


def target_size(width: int, height: int, limit: int = DEFAULT_RESIZE_TO) -> tuple[int, int] | None:
    """Return the downscaled ``(width, height)`` for an image, or ``None`` to keep it as is.

    The longer side is clamped to ``limit`` and the aspect ratio preserved.
    Images with a zero dimension are never resized.
    """
    if width == 0 or height == 0:
        return None
    if width <= limit and height <= limit:
        return None

    aspect = width / height
    if aspect > 1.0:
        return limit, max(1, round(limit / aspect))
    return max(1, round(limit * aspect)), limit


def downscale(image: Image.Image, limit: int = DEFAULT_RESIZE_TO) -> Image.Image:
    """Return ``image`` shrunk to fit within ``limit`` pixels, or ``image`` itself if it already fits."""
    size = target_size(image.width, image.height, limit)
    if size is None:
        return image
    logger.debug("resizing %dx%d image to %dx%d", image.width, image.height, *size)
    return image.resize(size, Image.Resampling.BICUBIC)
