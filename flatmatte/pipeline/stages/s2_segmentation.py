"""
Stage 2: Border Flood Fill Segmentation

Only background-like pixels propagate. A pixel in the transition band is
marked when the fill reaches it but never continues the fill, so a soft
gradient cannot leak the background into solid foreground.
"""

import numpy as np

from ..logger import PipelineLogger
from ..morphology import border_mask, label_components, touches
from ..types import MaskState


def flood_fill_from_border(
    delta_e: np.ndarray, lab_threshold: float, transition_threshold: float
) -> np.ndarray:
    """
    Classify every pixel by flooding from all four image edges

    Equivalent to a breadth-first fill seeded with every border pixel:
    - BACKGROUND: delta-E <= lab_threshold and 8-connected to the border
      through other such pixels
    - TRANSITION: delta-E in (lab_threshold, transition_threshold] and
      reached by the fill (on the border or next to BACKGROUND)
    - FOREGROUND: everything else

    Args:
        delta_e: Per-pixel distance to the background (H, W)
        lab_threshold: Background cutoff
        transition_threshold: Transition band upper bound

    Returns:
        uint8 mask (H, W) of MaskState values
    """
    mask = np.full(delta_e.shape, MaskState.UNCLASSIFIED, dtype=np.uint8)
    if delta_e.size == 0:
        return mask

    edges = border_mask(delta_e.shape)
    candidates = delta_e <= lab_threshold

    _, labels = label_components(candidates)
    seeded = np.unique(labels[edges & candidates])
    background = np.isin(labels, seeded) & candidates

    reached = edges | touches(background)
    band = (delta_e > lab_threshold) & (delta_e <= transition_threshold)
    transition = band & reached & ~background

    mask[:] = MaskState.FOREGROUND
    mask[background] = MaskState.BACKGROUND
    mask[transition] = MaskState.TRANSITION
    return mask


def segment(
    delta_e: np.ndarray,
    lab_threshold: float,
    transition_threshold: float,
    logger: PipelineLogger,
) -> np.ndarray:
    """Run the border flood fill and log class counts"""
    logger.log_info("Stage 2: Flood filling from border...")

    mask = flood_fill_from_border(delta_e, lab_threshold, transition_threshold)
    counts = mask_counts(mask)

    logger.log_s2(
        method="border_flood_fill",
        connectivity=8,
        lab_threshold=lab_threshold,
        transition_threshold=transition_threshold,
        **counts,
    )
    logger.log_info(
        f"  background={counts['background']:,} transition={counts['transition']:,} "
        f"foreground={counts['foreground']:,}"
    )
    return mask


def mask_counts(mask: np.ndarray) -> dict:
    """Pixel count per mask state"""
    return {
        state.name.lower(): int(np.count_nonzero(mask == state))
        for state in (MaskState.BACKGROUND, MaskState.TRANSITION, MaskState.FOREGROUND)
    }
