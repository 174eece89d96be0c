"""
Stage 1: Background Color Estimation from corner and edge samples
"""

from typing import Optional

import numpy as np

from ..config import MattingConfig
from ..logger import PipelineLogger
from ..types import RGB

DEFAULT_BACKGROUND = RGB(255, 255, 255)


def sample_blocks(
    image: np.ndarray, block_size: int = 5, edge_midpoints: bool = False
) -> np.ndarray:
    """
    Sample square blocks at the corners (and optionally edge midpoints)

    Blocks are clipped to the image, so small images may sample the same
    pixel more than once.

    Args:
        image: RGB or RGBA image (H, W, C)
        block_size: Side length of each block
        edge_midpoints: Also sample the middle of each edge

    Returns:
        Array of RGB samples (N, 3)
    """
    h, w = image.shape[:2]
    if h == 0 or w == 0:
        return np.empty((0, 3), dtype=np.uint8)

    far_x = max(0, w - block_size)
    far_y = max(0, h - block_size)
    origins = [(0, 0), (far_x, 0), (0, far_y), (far_x, far_y)]

    if edge_midpoints:
        mid_x = max(0, (w - block_size) // 2)
        mid_y = max(0, (h - block_size) // 2)
        origins += [(mid_x, 0), (mid_x, far_y), (0, mid_y), (far_x, mid_y)]

    samples = [
        image[y : y + block_size, x : x + block_size, :3].reshape(-1, 3)
        for x, y in origins
    ]
    return np.concatenate(samples).astype(np.uint8)


def dominant_bucket_centroid(samples: np.ndarray, step: int = 10) -> Optional[RGB]:
    """
    Group samples on a coarse grid and return the mean of the largest group

    Ties go to the bucket seen first.
    """
    if len(samples) == 0:
        return None

    buckets = samples.astype(np.int32) // step
    keys = (buckets[:, 0] << 16) | (buckets[:, 1] << 8) | buckets[:, 2]

    unique_keys, first_seen, counts = np.unique(keys, return_index=True, return_counts=True)
    largest = counts == counts.max()
    winner = unique_keys[largest][np.argmin(first_seen[largest])]

    members = samples[keys == winner].astype(np.float64)
    return RGB.from_sequence(members.mean(axis=0))


def estimate_background_color(
    image: np.ndarray,
    config: Optional[MattingConfig] = None,
    logger: Optional[PipelineLogger] = None,
) -> RGB:
    """
    Estimate the background color from corner blocks

    Algorithm:
    1. Sample fixed-size blocks at the corners (and edge midpoints)
    2. Bucket the samples on a coarse RGB grid
    3. Return the centroid of the most populated bucket

    Usable on its own: when no image record is open on the logger, one is
    opened for the estimate and closed again before returning.

    Args:
        image: RGB or RGBA image (H, W, C)
        config: Pipeline configuration
        logger: Logger instance

    Returns:
        Estimated background color, opaque white for an empty image
    """
    config = config or MattingConfig()
    logger = logger or PipelineLogger()

    owns_record = logger.current_image is None
    if owns_record:
        logger.start_image("<background>")

    try:
        return _estimate(image, config, logger)
    finally:
        if owns_record:
            logger.finish_image()


def _estimate(image: np.ndarray, config: MattingConfig, logger: PipelineLogger) -> RGB:
    logger.log_info("Stage 1: Estimating background color...")

    samples = sample_blocks(image, config.sample_block_size, config.sample_edge_midpoints)
    color = dominant_bucket_centroid(samples, config.bucket_step)

    if color is None:
        logger.log_s1(method="corner_buckets", samples=0, fallback=True)
        logger.log_info("  No samples, defaulting to white")
        return DEFAULT_BACKGROUND

    logger.log_s1(
        method="corner_buckets",
        samples=int(len(samples)),
        bucket_step=config.bucket_step,
        edge_midpoints=config.sample_edge_midpoints,
        background_rgb=color.as_tuple(),
    )
    logger.log_info(f"  Detected: {color.to_hex()} from {len(samples):,} samples")

    return color
