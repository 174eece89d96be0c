"""
Stage 5: Boundary Relaxation
"""

import numpy as np

from ..logger import PipelineLogger
from ..morphology import touches
from ..types import MaskState


def relax_boundary(
    mask: np.ndarray,
    delta_e: np.ndarray,
    lab_threshold: float,
    max_passes: int = 5,
    background_factor: float = 1.5,
    transition_factor: float = 2.2,
) -> tuple[np.ndarray, int, int]:
    """
    Re-test pixels on the background boundary against looser bands

    Each pass looks at FOREGROUND/TRANSITION pixels 8-adjacent to
    BACKGROUND in a snapshot of the mask:
    - delta-E <= background_factor * lab_threshold -> BACKGROUND
    - delta-E <= transition_factor * lab_threshold -> TRANSITION

    Stops after `max_passes` or the first pass that changes nothing.

    Returns:
        (new_mask, passes_run, pixels_changed)
    """
    result = mask.copy()
    background_limit = background_factor * lab_threshold
    transition_limit = transition_factor * lab_threshold

    passes = 0
    changed_total = 0
    for _ in range(max_passes):
        passes += 1
        boundary = (
            (result == MaskState.FOREGROUND) | (result == MaskState.TRANSITION)
        ) & touches(result == MaskState.BACKGROUND)

        to_background = boundary & (delta_e <= background_limit)
        to_transition = (
            boundary
            & ~to_background
            & (result == MaskState.FOREGROUND)
            & (delta_e <= transition_limit)
        )

        changed = int(to_background.sum() + to_transition.sum())
        if changed == 0:
            break

        result[to_background] = MaskState.BACKGROUND
        result[to_transition] = MaskState.TRANSITION
        changed_total += changed

    return result, passes, changed_total


def relax(
    mask: np.ndarray,
    delta_e: np.ndarray,
    lab_threshold: float,
    max_passes: int,
    background_factor: float,
    transition_factor: float,
    logger: PipelineLogger,
) -> np.ndarray:
    logger.log_info("Stage 5: Relaxing mask boundary...")

    result, passes, changed = relax_boundary(
        mask, delta_e, lab_threshold, max_passes, background_factor, transition_factor
    )

    logger.log_s5(
        method="banded_boundary_relaxation",
        max_passes=max_passes,
        passes_run=passes,
        pixels_changed=changed,
        background_band=background_factor * lab_threshold,
        transition_band=transition_factor * lab_threshold,
    )
    logger.log_info(f"  {passes} pass(es), {changed:,} pixel(s) reclassified")
    return result
