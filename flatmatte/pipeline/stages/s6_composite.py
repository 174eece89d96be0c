"""
Stage 6: Alpha Compositing from mask and delta-E
"""

import numpy as np

from ..logger import PipelineLogger
from ..types import MaskState


def transition_alpha(
    delta_e: np.ndarray, lab_threshold: float, transition_threshold: float
) -> np.ndarray:
    """Linear ramp 0..1 across the transition band"""
    span = transition_threshold - lab_threshold
    if span <= 0:
        return (delta_e > lab_threshold).astype(np.float32)
    return np.clip((delta_e - lab_threshold) / span, 0.0, 1.0).astype(np.float32)


def composite_alpha(
    rgba: np.ndarray,
    mask: np.ndarray,
    delta_e: np.ndarray,
    lab_threshold: float,
    transition_threshold: float,
) -> np.ndarray:
    """
    Build the output alpha channel

    BACKGROUND -> 0, FOREGROUND -> input alpha, TRANSITION -> input alpha
    scaled by the pixel's position inside the transition band.

    Returns:
        New RGBA array; color channels are copied unchanged
    """
    result = rgba.copy()
    alpha = rgba[..., 3].astype(np.float32)

    ramp = transition_alpha(delta_e, lab_threshold, transition_threshold)
    out = np.where(mask == MaskState.TRANSITION, alpha * ramp, alpha)
    out[mask == MaskState.BACKGROUND] = 0.0

    result[..., 3] = np.clip(np.rint(out), 0, 255).astype(np.uint8)
    return result


def composite(
    rgba: np.ndarray,
    mask: np.ndarray,
    delta_e: np.ndarray,
    lab_threshold: float,
    transition_threshold: float,
    logger: PipelineLogger,
) -> np.ndarray:
    logger.log_info("Stage 6: Compositing alpha...")

    result = composite_alpha(rgba, mask, delta_e, lab_threshold, transition_threshold)
    alpha = result[..., 3]

    logger.log_s6(
        method="linear_transition_ramp",
        transparent=int(np.count_nonzero(alpha == 0)),
        partial=int(np.count_nonzero((alpha > 0) & (alpha < 255))),
        opaque=int(np.count_nonzero(alpha == 255)),
    )
    return result
