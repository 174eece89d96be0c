"""
Stage 3: Interior Island Detection

Finds enclosed regions of background color that the border fill cannot
reach, such as the counter of a letter "O" printed on the background.
"""

import cv2
import numpy as np

from ..logger import PipelineLogger
from ..morphology import touches
from ..types import MaskState


def detect_islands(
    mask: np.ndarray,
    delta_e: np.ndarray,
    lab_threshold: float,
    transition_threshold: float,
    min_island_size: int,
) -> tuple[np.ndarray, int, int]:
    """
    Reclassify large enclosed background-colored regions

    Components (8-connected) of FOREGROUND pixels with delta-E <=
    lab_threshold become BACKGROUND when they have at least
    `min_island_size` pixels. Their one-pixel halo of FOREGROUND pixels
    within transition_threshold becomes TRANSITION. Smaller components are
    kept as FOREGROUND.

    Returns:
        (new_mask, islands_removed, islands_kept)
    """
    result = mask.copy()
    candidates = (mask == MaskState.FOREGROUND) & (delta_e <= lab_threshold)
    if not candidates.any():
        return result, 0, 0

    num_labels, labels, stats, _ = cv2.connectedComponentsWithStats(
        candidates.astype(np.uint8), connectivity=8
    )

    areas = stats[1:, cv2.CC_STAT_AREA]
    large = np.flatnonzero(areas >= min_island_size) + 1  # skip label 0
    if len(large) == 0:
        return result, 0, num_labels - 1

    islands = np.isin(labels, large)
    halo = (
        touches(islands)
        & ~islands
        & (mask == MaskState.FOREGROUND)
        & (delta_e <= transition_threshold)
    )

    result[islands] = MaskState.BACKGROUND
    result[halo] = MaskState.TRANSITION
    return result, len(large), num_labels - 1 - len(large)


def fill_islands(
    mask: np.ndarray,
    delta_e: np.ndarray,
    lab_threshold: float,
    transition_threshold: float,
    min_island_size: int,
    logger: PipelineLogger,
) -> np.ndarray:
    """Run island detection and log the outcome"""
    logger.log_info("Stage 3: Detecting interior islands...")

    result, removed, kept = detect_islands(
        mask, delta_e, lab_threshold, transition_threshold, min_island_size
    )
    reclassified = int(np.count_nonzero(result != mask))

    logger.log_s3(
        method="connected_components",
        connectivity=8,
        min_island_size=min_island_size,
        islands_removed=removed,
        islands_kept=kept,
        pixels_reclassified=reclassified,
    )
    logger.log_info(
        f"  Removed {removed} island(s), kept {kept} below {min_island_size} px"
    )
    return result
