"""
Stage 4: Transition Refinement by local neighbor vote
"""

import numpy as np

from ..logger import PipelineLogger
from ..morphology import count_neighbors
from ..types import MaskState


def refine_transitions(
    mask: np.ndarray, promote_min: int = 3, demote_min: int = 5
) -> tuple[np.ndarray, int, int]:
    """
    Single-pass majority vote over TRANSITION pixels

    Counts are taken from the input mask, so the result does not depend on
    scan order. A thin stroke crossing the transition band keeps enough
    foreground neighbors to be promoted.

    Args:
        mask: Current mask
        promote_min: Minimum foreground neighbors to promote
        demote_min: Minimum background neighbors to demote

    Returns:
        (new_mask, promoted, demoted)
    """
    result = mask.copy()
    transition = mask == MaskState.TRANSITION
    if not transition.any():
        return result, 0, 0

    fg = count_neighbors(mask == MaskState.FOREGROUND)
    bg = count_neighbors(mask == MaskState.BACKGROUND)

    promote = transition & (fg > bg) & (fg >= promote_min)
    demote = transition & ~promote & (bg >= demote_min) & (bg > fg)

    result[promote] = MaskState.FOREGROUND
    result[demote] = MaskState.BACKGROUND
    return result, int(promote.sum()), int(demote.sum())


def refine(mask: np.ndarray, promote_min: int, demote_min: int, logger: PipelineLogger):
    logger.log_info("Stage 4: Refining transition pixels...")

    result, promoted, demoted = refine_transitions(mask, promote_min, demote_min)

    logger.log_s4(
        method="neighbor_vote",
        promote_min=promote_min,
        demote_min=demote_min,
        promoted=promoted,
        demoted=demoted,
    )
    logger.log_info(f"  Promoted {promoted:,}, demoted {demoted:,}")
    return result
