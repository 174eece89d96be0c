"""
Neighborhood helpers shared by the mask stages (8-connectivity)
"""

import cv2
import numpy as np
from scipy import ndimage

EIGHT_NEIGHBORS = np.array([[1, 1, 1], [1, 0, 1], [1, 1, 1]], dtype=np.int32)


def border_mask(shape: tuple[int, int]) -> np.ndarray:
    """Boolean mask of the outermost ring of pixels"""
    mask = np.zeros(shape, dtype=bool)
    if mask.size:
        mask[0, :] = mask[-1, :] = True
        mask[:, 0] = mask[:, -1] = True
    return mask


def touches(mask: np.ndarray, radius: int = 1) -> np.ndarray:
    """Pixels within Chebyshev distance `radius` of any True pixel in `mask`"""
    if not mask.any():
        return np.zeros(mask.shape, dtype=bool)
    structure = np.ones((2 * radius + 1, 2 * radius + 1), dtype=bool)
    return ndimage.binary_dilation(mask, structure=structure)


def count_neighbors(mask: np.ndarray) -> np.ndarray:
    """Number of True 8-neighbors per pixel; outside the image counts as False"""
    return ndimage.convolve(
        mask.astype(np.int32), EIGHT_NEIGHBORS, mode="constant", cval=0
    )


def label_components(mask: np.ndarray) -> tuple[int, np.ndarray]:
    """
    8-connected component labeling

    Returns:
        (num_labels, labels) where label 0 is the unset region
    """
    if mask.size == 0:
        return 1, np.zeros(mask.shape, dtype=np.int32)
    return cv2.connectedComponents(mask.astype(np.uint8), connectivity=8)
