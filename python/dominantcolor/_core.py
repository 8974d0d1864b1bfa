"""K-means clustering of RGBA pixel buffers in RGB space.

RGB k-means (N clusters, M iterations):

1. Pick N starting colors by randomly sampling the pixels. If a sampled color
   is already a centroid keep sampling; after ``max_sample`` tries give up and
   stop seeding, so an image with a single color ends up with N=1.
2. Assign every pixel to the closest centroid in RGB space, keeping a running
   sum and count per cluster.
3. Compare every centroid with the mean of its new sums, then move it there.
4. If no centroid moved, the clusters converged. Otherwise repeat from 2, up
   to M iterations.
5. Sort the clusters by weight (number of pixels assigned to them).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_N_CLUSTERS = 4
DEFAULT_RESIZE_TO = 256
DEFAULT_MAX_SAMPLE = 10
DEFAULT_MAX_ITERATIONS = 50
DEFAULT_MIN_DARKNESS = 100
DEFAULT_MAX_BRIGHTNESS = 665

Seed = int | np.random.Generator | None


@dataclass(slots=True)
class _Cluster:
    centroid: tuple[int, int, int]
    sum_r: int = 0
    sum_g: int = 0
    sum_b: int = 0
    weight: int = 0

    def reset(self) -> None:
        self.sum_r = 0
        self.sum_g = 0
        self.sum_b = 0
        self.weight = 0

    def add_points(self, sum_r: int, sum_g: int, sum_b: int, count: int) -> None:
        self.sum_r += sum_r
        self.sum_g += sum_g
        self.sum_b += sum_b
        self.weight += count

    def aggregate(self) -> tuple[int, int, int]:
        # Truncating division, never rounding.
        return (
            self.sum_r // self.weight,
            self.sum_g // self.weight,
            self.sum_b // self.weight,
        )

    def matches_aggregate(self) -> bool:
        if self.weight == 0:
            return True
        return self.centroid == self.aggregate()

    def recompute_centroid(self) -> None:
        if self.weight > 0:
            self.centroid = self.aggregate()


@dataclass(frozen=True, slots=True)
class _DebugInfo:
    kmeans_loop_iterations: int
    kmeans_converged: bool
    total_weight: float


def _rng(seed: Seed) -> np.random.Generator:
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


def _pixels(buf: bytes, width: int, height: int) -> np.ndarray:
    pixels = np.frombuffer(buf, dtype=np.uint8)
    if pixels.size != width * height * 4:
        raise ValueError(
            f"buffer of {pixels.size} bytes does not match a {width}x{height} RGBA image"
        )
    return pixels.reshape(-1, 4)


def _seed_clusters(
    pixels: np.ndarray, n_clusters: int, rng: np.random.Generator, max_sample: int
) -> list[_Cluster]:
    clusters: list[_Cluster] = []
    if len(pixels) == 0:
        return clusters

    seen: set[tuple[int, int, int]] = set()
    for _ in range(n_clusters):
        color_unique = False
        for _ in range(max_sample):
            r, g, b, a = (int(c) for c in pixels[rng.integers(len(pixels))])
            if a == 0:
                continue
            color_unique = (r, g, b) not in seen
            if color_unique:
                seen.add((r, g, b))
                clusters.append(_Cluster(centroid=(r, g, b)))
                break
        # Give up on all remaining slots, not just this one: a later slot could
        # still find a unique color, but the output depends on stopping here.
        if not color_unique:
            break

    logger.debug("seeded %d of %d clusters", len(clusters), n_clusters)
    return clusters


def _assign(rgb: np.ndarray, clusters: list[_Cluster]) -> None:
    """Accumulate every pixel of ``rgb`` into its nearest cluster.

    ``rgb`` is an ``(P, 3)`` int64 array of opaque pixels. Squared distances
    order the same way Euclidean ones do, and ``argmin`` resolves ties to the
    first cluster.
    """
    k = len(clusters)
    centroids = np.array([c.centroid for c in clusters], dtype=np.int64)
    distances = np.empty((k, len(rgb)), dtype=np.int64)
    for i in range(k):
        diff = rgb - centroids[i]
        distances[i] = (diff * diff).sum(axis=1)
    labels = distances.argmin(axis=0)

    counts = np.bincount(labels, minlength=k)
    sums = [np.bincount(labels, weights=rgb[:, ch], minlength=k) for ch in range(3)]
    for i, cluster in enumerate(clusters):
        cluster.add_points(int(sums[0][i]), int(sums[1][i]), int(sums[2][i]), int(counts[i]))


def _lloyd(rgb: np.ndarray, clusters: list[_Cluster], max_iterations: int) -> tuple[int, bool]:
    """Refine ``clusters`` in place, returning the iteration count and whether it converged."""
    converged = False
    iteration = 0
    while iteration < max_iterations and not converged and clusters:
        for cluster in clusters:
            cluster.reset()

        _assign(rgb, clusters)

        converged = True
        for cluster in clusters:
            converged = cluster.matches_aggregate() and converged
            cluster.recompute_centroid()
        iteration += 1

    if clusters and not converged:
        logger.debug("k-means did not converge within %d iterations", max_iterations)
    else:
        logger.debug("k-means finished after %d iterations", iteration)
    return iteration, converged


def _find_clusters(
    pixels: np.ndarray, n_clusters: int, rng: np.random.Generator, max_sample: int, max_iterations: int
) -> tuple[list[_Cluster], int, bool]:
    clusters = _seed_clusters(pixels, n_clusters, rng, max_sample)
    rgb = pixels[pixels[:, 3] != 0, :3].astype(np.int64)
    iterations, converged = _lloyd(rgb, clusters, max_iterations)
    clusters.sort(key=lambda c: c.weight, reverse=True)
    return clusters, iterations, converged


def _colors_debug(
    buf: bytes,
    width: int,
    height: int,
    n_clusters: int,
    seed: Seed,
    max_sample: int,
    max_iterations: int,
) -> tuple[list[tuple[int, int, int, float]], _DebugInfo]:
    """Cluster a row-major RGBA buffer into at most ``n_clusters`` weighted colors."""
    pixels = _pixels(buf, width, height)
    clusters, iterations, converged = _find_clusters(
        pixels, n_clusters, _rng(seed), max_sample, max_iterations
    )
    total_weight = float(width) * float(height)
    colors = [(*c.centroid, c.weight / total_weight) for c in clusters]
    return colors, _DebugInfo(iterations, converged, total_weight)


def _select(
    colors: list[tuple[int, int, int]], min_darkness: int, max_brightness: int
) -> int | None:
    """Return the index of the first color whose channel sum is strictly inside the brightness window.

    Falls back to the first color, or ``None`` when there are no colors at all.
    """
    if not colors:
        return None
    for i, color in enumerate(colors):
        if min_darkness < sum(color) < max_brightness:
            return i
    return 0
