"""`dominantcolor` finds the dominant colors of an image.

Pixels are clustered with k-means in RGB space. The heaviest clusters become
the palette, and a brightness window picks a single representative color that
is neither close to black nor close to white.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal, Self, overload

from PIL import Image

from dominantcolor._core import (
    DEFAULT_MAX_BRIGHTNESS,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_MAX_SAMPLE,
    DEFAULT_MIN_DARKNESS,
    DEFAULT_N_CLUSTERS,
    DEFAULT_RESIZE_TO,
    Seed,
    _colors_debug,
    _DebugInfo,
    _select,
)
from dominantcolor._resize import downscale, target_size

__all__ = [
    "find",
    "find_n",
    "find_weight",
    "hex",
    "hex_string",
    "RGBA",
    "Color",
    "DebugInfo",
    "downscale",
    "target_size",
    "DEFAULT_N_CLUSTERS",
    "DEFAULT_RESIZE_TO",
    "DEFAULT_MAX_SAMPLE",
    "DEFAULT_MAX_ITERATIONS",
    "DEFAULT_MIN_DARKNESS",
    "DEFAULT_MAX_BRIGHTNESS",
]


@dataclass(frozen=True, slots=True)
class RGBA:
    """A plain 8-bit color with alpha, as returned by ``find`` and ``find_n``.

    ``RGBA(0, 0, 0, 0)`` stands for "no color": the image had no opaque pixels.
    """

    r: int
    g: int
    b: int
    a: int


@dataclass(frozen=True, slots=True)
class Color:
    """A dominant color together with the share of the image it covers.

    Attributes:
        r: Red component of the cluster centroid.
        g: Green component of the cluster centroid.
        b: Blue component of the cluster centroid.
        a: Alpha, always 255 for colors produced by clustering.
        weight: Number of pixels in the cluster divided by the number of pixels in the
            (downscaled) image. Transparent pixels belong to no cluster, so the weights
            of a palette add up to less than 1.0 when the image has any.
    """

    r: int
    g: int
    b: int
    a: int = 255
    weight: float = 0.0

    def to_rgba(self) -> RGBA:
        return RGBA(self.r, self.g, self.b, self.a)


@dataclass(frozen=True, slots=True)
class DebugInfo:
    """Debug info returned by ``find_weight()`` when called with ``with_debug=True``.

    Attributes:
        kmeans_loop_iterations: The number of assignment passes k-means ran.
        kmeans_converged: Did k-means converge? If not, it was cut off by the maximum
            number of iterations, or there was nothing to cluster.
        size: The ``(width, height)`` the image was clustered at, after downscaling.
        total_weight: The pixel count that cluster sizes were divided by.
    """

    kmeans_loop_iterations: int
    kmeans_converged: bool
    size: tuple[int, int]
    total_weight: float

    @classmethod
    def _from_core(cls, debug: _DebugInfo, size: tuple[int, int]) -> Self:
        return cls(
            kmeans_loop_iterations=debug.kmeans_loop_iterations,
            kmeans_converged=debug.kmeans_converged,
            size=size,
            total_weight=debug.total_weight,
        )


def _check_config(n: int, resize_to: int, max_sample: int, max_iterations: int) -> None:
    if n < 0:
        raise ValueError(f"number of colors must be non-negative, got {n}")
    if resize_to < 1:
        raise ValueError(f"resize_to must be at least 1, got {resize_to}")
    if max_sample < 1:
        raise ValueError(f"max_sample must be at least 1, got {max_sample}")
    if max_iterations < 0:
        raise ValueError(f"max_iterations must be non-negative, got {max_iterations}")


@overload
def find_weight(
    image: Image.Image,
    n: int = ...,
    *,
    seed: Seed = ...,
    resize_to: int = ...,
    max_sample: int = ...,
    max_iterations: int = ...,
    with_debug: Literal[True],
) -> tuple[list[Color], DebugInfo]: ...


@overload
def find_weight(
    image: Image.Image,
    n: int = ...,
    *,
    seed: Seed = ...,
    resize_to: int = ...,
    max_sample: int = ...,
    max_iterations: int = ...,
    with_debug: Literal[False] = ...,
) -> list[Color]: ...


def find_weight(
    image: Image.Image,
    n: int = DEFAULT_N_CLUSTERS,
    *,
    seed: Seed = 0,
    resize_to: int = DEFAULT_RESIZE_TO,
    max_sample: int = DEFAULT_MAX_SAMPLE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    with_debug: bool = False,
) -> list[Color] | tuple[list[Color], DebugInfo]:
    """Extract up to ``n`` dominant colors from a PIL image, with their weights.

    Images in modes other than RGBA are converted first. Images larger than
    ``resize_to`` on either side are downscaled before clustering. Fully
    transparent pixels are ignored.

    Returns the colors sorted by weight, the heaviest first. Fewer than ``n``
    colors are returned when the image does not have enough distinct colors,
    and none at all for a fully transparent or empty image.

    Args:
        image: A PIL image.
        n: The number of clusters to look for. ``0`` means the default of 4.
        seed: Seed for picking the initial centroids: an ``int``, a
            ``numpy.random.Generator`` or ``None`` for fresh OS entropy. With a fixed
            seed the result is reproducible.
        resize_to: Images with a side longer than this are downscaled so the longer side
            matches it. Must be at least 1.
        max_sample: How many random pixels to try for each initial centroid before giving
            up on finding a color not used by another centroid. Must be at least 1.
        max_iterations: Upper bound on k-means iterations. Must be non-negative.
        with_debug: If ``True``, return a ``(colors, debug_info)`` tuple instead of just the
            color list.

    Returns:
        A list of :class:`Color` sorted by weight, or a tuple of that list and a
        :class:`DebugInfo` if ``with_debug=True``.

    Raises:
        TypeError: If ``image`` is not a PIL image.
        ValueError: If any config parameter is out of range.
    """
    if not isinstance(image, Image.Image):
        raise TypeError(f"expected a PIL image, got {type(image).__name__}")
    _check_config(n, resize_to, max_sample, max_iterations)
    if n == 0:
        n = DEFAULT_N_CLUSTERS

    if image.mode != "RGBA":
        image = image.convert("RGBA")
    image = downscale(image, resize_to)
    width, height = image.size
    raw_colors, raw_debug = _colors_debug(
        image.tobytes(),
        width,
        height,
        n,
        seed,
        max_sample,
        max_iterations,
    )
    color_list = [Color(r, g, b, 255, weight) for r, g, b, weight in raw_colors]
    if with_debug:
        return color_list, DebugInfo._from_core(raw_debug, (width, height))
    return color_list


def find_n(
    image: Image.Image,
    n: int,
    *,
    seed: Seed = 0,
    resize_to: int = DEFAULT_RESIZE_TO,
    max_sample: int = DEFAULT_MAX_SAMPLE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> list[RGBA]:
    """Extract up to ``n`` dominant colors, the most dominant first.

    Same as :func:`find_weight` without the weights.
    """
    colors = find_weight(
        image,
        n,
        seed=seed,
        resize_to=resize_to,
        max_sample=max_sample,
        max_iterations=max_iterations,
    )
    return [c.to_rgba() for c in colors]


def find(
    image: Image.Image,
    *,
    seed: Seed = 0,
    resize_to: int = DEFAULT_RESIZE_TO,
    max_sample: int = DEFAULT_MAX_SAMPLE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    min_darkness: int = DEFAULT_MIN_DARKNESS,
    max_brightness: int = DEFAULT_MAX_BRIGHTNESS,
) -> RGBA:
    """Find the single color that best represents the image.

    The image is clustered into four colors. The heaviest one whose channel sum
    ``r + g + b`` lies strictly between ``min_darkness`` and ``max_brightness`` wins,
    which skips near-black and near-white backgrounds. If no color is in that
    window the heaviest color is returned anyway, and a fully transparent image
    gives ``RGBA(0, 0, 0, 0)``.

    Raises:
        ValueError: If ``min_darkness >= max_brightness`` or any other config parameter
            is out of range.
    """
    if min_darkness >= max_brightness:
        raise ValueError(
            f"min_darkness must be below max_brightness, got {min_darkness} and {max_brightness}"
        )
    colors = find_n(
        image,
        DEFAULT_N_CLUSTERS,
        seed=seed,
        resize_to=resize_to,
        max_sample=max_sample,
        max_iterations=max_iterations,
    )
    best = _select([(c.r, c.g, c.b) for c in colors], min_darkness, max_brightness)
    if best is None:
        return RGBA(0, 0, 0, 0)
    return colors[best]


def hex(color: RGBA | Color | Sequence[int]) -> bytes:  # noqa: A001
    """Render a color as the seven ASCII bytes ``#RRGGBB``, ignoring alpha."""
    return hex_string(color).encode("ascii")


def hex_string(color: RGBA | Color | Sequence[int]) -> str:
    """Render a color as an uppercase ``#RRGGBB`` string, ignoring alpha."""
    if isinstance(color, (RGBA, Color)):
        r, g, b = color.r, color.g, color.b
    else:
        r, g, b = color[:3]
    return f"#{r:02X}{g:02X}{b:02X}"
