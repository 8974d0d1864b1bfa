import math

import numpy as np
import pytest
from PIL import Image

from dominantcolor import (
    RGBA,
    Color,
    DebugInfo,
    find,
    find_n,
    find_weight,
    hex,
    hex_string,
)

ORANGE = (230, 96, 0)


def make_rgba_image(size: tuple[int, int], color: tuple[int, int, int, int]) -> Image.Image:
    return Image.new("RGBA", size, color)


def make_distinct_image() -> Image.Image:
    # 16x16 image where every pixel has its own color.
    img = Image.new("RGB", (16, 16))
    for x in range(16):
        for y in range(16):
            img.putpixel((x, y), (x * 16, y * 16, 128))
    return img


def make_orange_image() -> Image.Image:
    # 80% slightly jittered orange, a white band on top and a near-black band at the bottom.
    rng = np.random.default_rng(7)
    data = np.empty((100, 100, 4), dtype=np.int64)
    data[..., :3] = ORANGE
    data[..., :3] += rng.integers(-3, 4, size=(100, 100, 3))
    data[:10, :, :3] = 255
    data[90:, :, :3] = 10
    data[..., 3] = 255
    return Image.fromarray(np.clip(data, 0, 255).astype(np.uint8), "RGBA")


def distance(a: RGBA, b: tuple[int, int, int]) -> float:
    return math.sqrt((a.r - b[0]) ** 2 + (a.g - b[1]) ** 2 + (a.b - b[2]) ** 2)


def test_rgba_image() -> None:
    img = make_rgba_image((10, 10), (200, 100, 50, 255))
    result = find_weight(img)
    assert isinstance(result, list)
    assert len(result) > 0
    assert isinstance(result[0], Color)


@pytest.mark.parametrize("mode", ["RGB", "L"])
def test_other_modes_are_converted(mode: str) -> None:
    img = Image.new("RGB", (8, 8), (128, 128, 128)).convert(mode)
    assert find(img) == RGBA(128, 128, 128, 255)


def make_palette_image() -> Image.Image:
    img = Image.new("P", (8, 8), 0)
    img.putpalette([200, 100, 50])
    return img


def test_palette_image_is_converted() -> None:
    assert find(make_palette_image()) == RGBA(200, 100, 50, 255)


def test_palette_transparency_becomes_alpha() -> None:
    img = make_palette_image()
    img.info["transparency"] = 0
    assert find_n(img, 4) == []
    assert find(img) == RGBA(0, 0, 0, 0)


def test_not_an_image_raises() -> None:
    with pytest.raises(TypeError, match="PIL image"):
        find_weight(np.zeros((4, 4, 4), dtype=np.uint8))  # type: ignore[arg-type]


def test_single_color_roundtrip() -> None:
    img = make_rgba_image((10, 10), (255, 165, 0, 255))
    color = find(img)
    assert color == RGBA(255, 165, 0, 255)
    assert hex_string(color) == "#FFA500"


def test_single_color_yields_one_cluster() -> None:
    img = make_rgba_image((10, 10), (30, 60, 90, 255))
    assert find_n(img, 8) == [RGBA(30, 60, 90, 255)]


def test_bright_only_image_falls_back_to_heaviest() -> None:
    img = make_rgba_image((10, 10), (255, 255, 255, 255))
    assert find(img) == RGBA(255, 255, 255, 255)


def test_transparent_image() -> None:
    img = make_rgba_image((10, 10), (0, 0, 0, 0))
    assert find(img) == RGBA(0, 0, 0, 0)
    assert find_n(img, 4) == []
    assert find_weight(img, 4) == []


def test_empty_image() -> None:
    img = Image.new("RGBA", (0, 0))
    assert find(img) == RGBA(0, 0, 0, 0)
    assert find_n(img, 4) == []


def test_distinct_colors_fill_every_cluster() -> None:
    img = make_distinct_image()
    assert len(find_n(img, 4)) == 4
    assert len(find_n(img, 2)) == 2


def test_weights_sorted_and_normalized() -> None:
    colors = find_weight(make_distinct_image(), 4)
    weights = [c.weight for c in colors]
    assert weights == sorted(weights, reverse=True)
    assert all(0.0 <= w <= 1.0 for w in weights)
    assert sum(weights) == pytest.approx(1.0)
    assert all(c.a == 255 for c in colors)


def test_weights_exclude_transparent_pixels() -> None:
    img = make_rgba_image((10, 10), (200, 100, 50, 255))
    for x in range(5):
        for y in range(5):
            img.putpixel((x, y), (0, 0, 0, 0))
    colors = find_weight(img, 4)
    assert colors == [Color(200, 100, 50, 255, 0.75)]


def test_zero_means_default_cluster_count() -> None:
    img = make_distinct_image()
    assert len(find_weight(img, 0)) == 4
    assert len(find_n(img, 0)) == 4


def test_find_n_matches_find_weight() -> None:
    img = make_distinct_image()
    assert find_n(img, 3) == [c.to_rgba() for c in find_weight(img, 3)]


def test_fixed_seed_is_reproducible() -> None:
    img = make_distinct_image()
    assert find_weight(img, 4, seed=42) == find_weight(img, 4, seed=42)
    assert find_n(img, 4) == find_n(img, 4)
    assert find(img) == find(img)
    assert find_weight(img, 4, seed=np.random.default_rng(3)) == find_weight(
        img, 4, seed=np.random.default_rng(3)
    )


def test_dominant_orange() -> None:
    img = make_orange_image()
    assert distance(find(img), ORANGE) < 50.0
    assert distance(find_n(img, 4)[0], ORANGE) < 50.0


def test_large_image_is_downscaled() -> None:
    img = Image.new("RGB", (1000, 500), (200, 100, 50))
    colors, debug = find_weight(img, 4, with_debug=True)
    assert debug.size == (256, 128)
    assert debug.total_weight == 256 * 128
    assert sum(c.weight for c in colors) == pytest.approx(1.0)


def test_with_debug_returns_tuple() -> None:
    img = make_rgba_image((10, 10), (200, 100, 50, 255))
    result = find_weight(img, with_debug=True)
    assert isinstance(result, tuple)
    color_list, debug = result
    assert color_list == [Color(200, 100, 50, 255, 1.0)]
    assert isinstance(debug, DebugInfo)
    assert debug.kmeans_loop_iterations == 1
    assert debug.kmeans_converged
    assert debug.size == (10, 10)


def test_with_debug_on_transparent_image() -> None:
    img = make_rgba_image((4, 4), (0, 0, 0, 0))
    colors, debug = find_weight(img, with_debug=True)
    assert colors == []
    assert debug.kmeans_loop_iterations == 0
    assert not debug.kmeans_converged


def test_iteration_cap_is_not_an_error() -> None:
    colors, debug = find_weight(make_distinct_image(), 4, max_iterations=1, with_debug=True)
    assert len(colors) == 4
    assert debug.kmeans_loop_iterations == 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"n": -1},
        {"resize_to": 0},
        {"max_sample": 0},
        {"max_iterations": -1},
    ],
)
def test_invalid_config_raises(kwargs: dict[str, int]) -> None:
    img = make_rgba_image((10, 10), (200, 100, 50, 255))
    with pytest.raises(ValueError):
        find_weight(img, **kwargs)


def test_invalid_brightness_window_raises() -> None:
    img = make_rgba_image((10, 10), (200, 100, 50, 255))
    with pytest.raises(ValueError, match="min_darkness"):
        find(img, min_darkness=500, max_brightness=400)


def test_brightness_window_is_configurable() -> None:
    img = make_rgba_image((10, 10), (200, 100, 50, 255))
    # 350 is outside (400, 700), so the heaviest color is returned anyway.
    assert find(img, min_darkness=400, max_brightness=700) == RGBA(200, 100, 50, 255)


def test_hex_format() -> None:
    color = RGBA(0xCB, 0x5A, 0x27, 255)
    assert hex(color) == b"#CB5A27"
    assert hex_string(color) == "#CB5A27"


def test_hex_ignores_alpha_and_accepts_tuples() -> None:
    assert hex_string(Color(0, 15, 255, 255, 0.25)) == "#000FFF"
    assert hex_string((1, 2, 3, 0)) == "#010203"
    assert hex((255, 255, 255)) == b"#FFFFFF"
