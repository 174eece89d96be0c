import numpy as np
import pytest

from flatmatte.pipeline import RGB
from flatmatte.pipeline.color import (
    LabCache,
    delta_e_map,
    pack_rgb,
    rgb_array_to_lab,
    rgb_to_lab,
    unpack_rgb,
)


def test_white_is_l100():
    lab = rgb_to_lab(RGB(255, 255, 255))
    assert lab.l == pytest.approx(100.0, abs=0.01)
    assert lab.a == pytest.approx(0.0, abs=0.05)
    assert lab.b == pytest.approx(0.0, abs=0.05)


def test_black_is_origin():
    lab = rgb_to_lab(RGB(0, 0, 0))
    assert lab.as_tuple() == pytest.approx((0.0, 0.0, 0.0), abs=1e-3)


def test_pure_red_matches_reference():
    lab = rgb_to_lab(RGB(255, 0, 0))
    assert lab.l == pytest.approx(53.24, abs=0.1)
    assert lab.a == pytest.approx(80.09, abs=0.5)
    assert lab.b == pytest.approx(67.20, abs=0.5)


def test_vectorized_matches_scalar():
    colors = np.array([[12, 200, 99], [255, 128, 0], [3, 3, 3]], dtype=np.uint8)
    labs = rgb_array_to_lab(colors)
    for color, lab in zip(colors, labs):
        assert rgb_to_lab(RGB(*color.tolist())).as_tuple() == pytest.approx(tuple(lab))


def test_lightness_is_monotonic_for_grays():
    grays = np.repeat(np.arange(256, dtype=np.uint8)[:, None], 3, axis=1)
    lightness = rgb_array_to_lab(grays)[:, 0]
    assert np.all(np.diff(lightness) > 0)


def test_conversion_keeps_shape():
    image = np.full((2, 5, 3), 128, dtype=np.uint8)
    lab = rgb_array_to_lab(image)
    assert lab.shape == (2, 5, 3)
    assert lab.dtype == np.float64
    assert np.allclose(lab, lab[0, 0])
    assert rgb_array_to_lab(np.empty((0, 3), dtype=np.uint8)).shape == (0, 3)


def test_pack_unpack():
    colors = np.array([[1, 2, 3], [255, 0, 128]], dtype=np.uint8)
    keys = pack_rgb(colors)
    assert keys.tolist() == [0x010203, 0xFF0080]
    assert np.array_equal(unpack_rgb(keys), colors)


def test_cache_is_bounded_lru():
    cache = LabCache(max_entries=2)
    a, b, c = RGB(1, 1, 1), RGB(2, 2, 2), RGB(3, 3, 3)

    cache.get(a)
    cache.get(b)
    cache.get(a)  # refresh a
    cache.get(c)  # evicts b

    assert len(cache) == 2
    assert cache.hits == 1
    assert cache.misses == 3

    cache.get(b)
    assert cache.misses == 4


def test_cache_get_many_matches_direct_conversion():
    cache = LabCache(max_entries=16)
    colors = np.array([[10, 20, 30], [200, 100, 50]], dtype=np.uint8)

    first = cache.get_many(pack_rgb(colors))
    second = cache.get_many(pack_rgb(colors))

    assert np.allclose(first, rgb_array_to_lab(colors))
    assert np.array_equal(first, second)
    assert cache.misses == 2
    assert cache.hits == 2


def test_cache_bulk_path_for_many_colors():
    cache = LabCache(max_entries=2)
    colors = np.stack([np.arange(20), np.arange(20) * 3, np.full(20, 7)], axis=1).astype(np.uint8)

    result = cache.get_many(pack_rgb(colors))

    assert np.allclose(result, rgb_array_to_lab(colors))
    assert cache.misses == 20
    assert len(cache) == 2
    # Only the tail is kept
    cache.get(RGB(*colors[-1].tolist()))
    assert cache.hits == 1


def test_cache_clear():
    cache = LabCache()
    cache.get(RGB(5, 5, 5))
    cache.clear()
    assert len(cache) == 0
    assert cache.hits == cache.misses == 0


def test_delta_e_zero_only_for_exact_background():
    image = np.array(
        [[[255, 255, 255], [254, 255, 255]], [[0, 0, 0], [255, 255, 255]]],
        dtype=np.uint8,
    )
    delta = delta_e_map(image, RGB(255, 255, 255), LabCache())

    assert delta.dtype == np.float32
    assert delta[0, 0] == 0.0
    assert delta[1, 1] == 0.0
    assert delta[0, 1] > 0.0
    assert delta[1, 0] == pytest.approx(100.0, abs=0.05)


def test_delta_e_converts_each_color_once():
    image = np.zeros((8, 8, 3), dtype=np.uint8)
    image[:4] = (10, 20, 30)
    cache = LabCache()

    delta_e_map(image, RGB(0, 0, 0), cache)

    # two image colors plus the background lookup
    assert cache.misses == 2
    assert cache.hits == 1


def test_delta_e_empty_image():
    delta = delta_e_map(np.zeros((0, 4, 3), dtype=np.uint8), RGB(0, 0, 0), LabCache())
    assert delta.shape == (0, 4)
