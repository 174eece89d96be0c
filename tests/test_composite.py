import numpy as np

from flatmatte.pipeline import MaskState
from flatmatte.pipeline.stages.s6_composite import composite_alpha, transition_alpha

B = MaskState.BACKGROUND
T = MaskState.TRANSITION
F = MaskState.FOREGROUND


def rgba_row(n, alpha=255):
    image = np.zeros((1, n, 4), dtype=np.uint8)
    image[..., :3] = (10, 20, 30)
    image[..., 3] = alpha
    return image


def test_background_clear_foreground_keeps_alpha():
    rgba = rgba_row(2, alpha=200)
    mask = np.array([[B, F]], dtype=np.uint8)
    delta = np.array([[0.0, 50.0]], dtype=np.float32)

    result = composite_alpha(rgba, mask, delta, 10.0, 13.0)

    assert result[0, :, 3].tolist() == [0, 200]
    assert np.array_equal(result[..., :3], rgba[..., :3])


def test_transition_ramp():
    rgba = rgba_row(4)
    mask = np.full((1, 4), T, dtype=np.uint8)
    delta = np.array([[10.0, 11.5, 13.0, 40.0]], dtype=np.float32)

    result = composite_alpha(rgba, mask, delta, 10.0, 13.0)

    assert result[0, :, 3].tolist() == [0, 128, 255, 255]


def test_input_is_not_modified():
    rgba = rgba_row(1)
    before = rgba.copy()
    composite_alpha(rgba, np.array([[B]], dtype=np.uint8), np.zeros((1, 1), np.float32), 1, 2)
    assert np.array_equal(rgba, before)


def test_degenerate_band():
    ramp = transition_alpha(np.array([0.0, 0.5]), 0.0, 0.0)
    assert ramp.tolist() == [0.0, 1.0]
