import numpy as np

from flatmatte.pipeline import MaskState
from flatmatte.pipeline.stages.s2_segmentation import flood_fill_from_border, mask_counts

BG = MaskState.BACKGROUND
TR = MaskState.TRANSITION
FG = MaskState.FOREGROUND

LAB = 12.0
TRANS = 15.6


def test_uniform_background_is_all_background():
    mask = flood_fill_from_border(np.zeros((5, 5), dtype=np.float32), LAB, TRANS)
    assert np.all(mask == BG)


def test_enclosed_background_color_is_not_reached():
    delta = np.zeros((5, 5), dtype=np.float32)
    delta[1:4, 1:4] = 100.0
    delta[2, 2] = 0.0

    mask = flood_fill_from_border(delta, LAB, TRANS)

    assert mask[2, 2] == FG
    assert mask[1, 1] == FG
    assert mask[0, 0] == BG


def test_transition_band_does_not_propagate():
    delta = np.zeros((7, 7), dtype=np.float32)
    delta[1:6, 1:6] = 14.0  # soft ring, inside the band
    delta[2:5, 2:5] = 0.0  # background color behind it

    mask = flood_fill_from_border(delta, LAB, TRANS)

    assert mask[0, 0] == BG
    assert mask[1, 1] == TR
    assert mask[1, 3] == TR
    assert np.all(mask[2:5, 2:5] == FG)


def test_band_pixel_not_reached_is_foreground():
    delta = np.zeros((7, 7), dtype=np.float32)
    delta[1:6, 1:6] = 100.0
    delta[3, 3] = 14.0

    mask = flood_fill_from_border(delta, LAB, TRANS)

    assert mask[3, 3] == FG


def test_border_band_pixel_is_seeded_as_transition():
    delta = np.full((3, 3), 100.0, dtype=np.float32)
    delta[0, 0] = 14.0

    mask = flood_fill_from_border(delta, LAB, TRANS)

    assert mask[0, 0] == TR
    assert mask[1, 1] == FG


def test_fill_uses_eight_connectivity():
    delta = np.full((4, 4), 100.0, dtype=np.float32)
    delta[0, 0] = 0.0
    delta[1, 1] = 0.0  # diagonal neighbor of a border seed
    delta[2, 2] = 0.0

    mask = flood_fill_from_border(delta, LAB, TRANS)

    assert mask[1, 1] == BG
    assert mask[2, 2] == BG


def test_exact_match_thresholds():
    delta = np.array([[0.0, 0.01], [0.0, 0.0]], dtype=np.float32)
    mask = flood_fill_from_border(delta, 0.0, 0.0)
    assert mask[0, 0] == BG
    assert mask[0, 1] == FG


def test_no_pixel_left_unclassified():
    rng = np.random.default_rng(7)
    delta = rng.uniform(0, 30, size=(32, 24)).astype(np.float32)
    mask = flood_fill_from_border(delta, LAB, TRANS)
    assert not np.any(mask == MaskState.UNCLASSIFIED)


def test_empty_input():
    mask = flood_fill_from_border(np.zeros((0, 3), dtype=np.float32), LAB, TRANS)
    assert mask.shape == (0, 3)


def test_mask_counts():
    mask = np.array([[BG, TR], [FG, FG]], dtype=np.uint8)
    assert mask_counts(mask) == {"background": 1, "transition": 1, "foreground": 2}
