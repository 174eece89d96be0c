"""
Stage 7: Mask-aware Post-Filters (erosion, decontamination, edge softening)
"""

import cv2
import numpy as np

from ..config import MattingConfig
from ..logger import PipelineLogger
from ..morphology import border_mask, touches
from ..types import RGB, MaskState


def smart_erosion(
    rgba: np.ndarray,
    mask: np.ndarray,
    delta_e: np.ndarray,
    max_delta_e: float,
    passes: int = 1,
    radius: int = 1,
) -> tuple[np.ndarray, np.ndarray, int]:
    """
    Strip background-tinted fringe from the matte edge

    Each pass clears visible pixels within `radius` of BACKGROUND or the
    image boundary whose delta-E is at most `max_delta_e`. Cleared pixels
    become BACKGROUND, so the next pass reaches one ring deeper.

    Returns:
        (rgba, mask, pixels_removed)
    """
    rgba = rgba.copy()
    mask = mask.copy()
    if mask.size == 0:
        return rgba, mask, 0

    near_edge = touches(border_mask(mask.shape), radius - 1)
    fringe_colored = delta_e <= max_delta_e

    removed = 0
    for _ in range(passes):
        near = near_edge | touches(mask == MaskState.BACKGROUND, radius)
        hit = (
            near
            & fringe_colored
            & (rgba[..., 3] > 0)
            & (mask != MaskState.BACKGROUND)
        )
        if not hit.any():
            break

        rgba[hit, 3] = 0
        mask[hit] = MaskState.BACKGROUND
        removed += int(hit.sum())

    return rgba, mask, removed


def decontaminate_colors(
    rgba: np.ndarray, mask: np.ndarray, background: RGB, min_alpha: float = 0.1
) -> tuple[np.ndarray, int, int]:
    """
    Remove the background's contribution from partially transparent pixels

    For TRANSITION pixels with alpha a in (0, 1):
        clean = (observed - background * (1 - a)) / a
    Pixels with a below `min_alpha` are made fully transparent instead.

    Returns:
        (rgba, pixels_cleaned, pixels_dropped)
    """
    rgba = rgba.copy()
    alpha = rgba[..., 3]
    partial = (mask == MaskState.TRANSITION) & (alpha > 0) & (alpha < 255)
    if not partial.any():
        return rgba, 0, 0

    a = alpha[partial].astype(np.float64)[:, None] / 255.0
    dropped = a[:, 0] < min_alpha

    observed = rgba[partial, :3].astype(np.float64)
    bg = np.array(background.as_tuple(), dtype=np.float64)
    clean = (observed - bg * (1.0 - a)) / a
    clean = np.clip(np.rint(clean), 0, 255).astype(np.uint8)

    colors = rgba[partial, :3]
    colors[~dropped] = clean[~dropped]
    rgba[partial, :3] = colors

    alphas = alpha[partial]
    alphas[dropped] = 0
    rgba[partial, 3] = alphas

    return rgba, int((~dropped).sum()), int(dropped.sum())


def soften_edges(
    rgba: np.ndarray, mask: np.ndarray, sigma: float = 0.8, radius: int = 1
) -> tuple[np.ndarray, int]:
    """
    Replace the alpha of opaque pixels bordering BACKGROUND with a
    Gaussian-weighted average of the surrounding alpha

    Returns:
        (rgba, pixels_softened)
    """
    rgba = rgba.copy()
    target = (rgba[..., 3] == 255) & touches(mask == MaskState.BACKGROUND)
    if not target.any():
        return rgba, 0

    ksize = 2 * radius + 1
    blurred = cv2.GaussianBlur(
        rgba[..., 3].astype(np.float32),
        (ksize, ksize),
        sigma,
        borderType=cv2.BORDER_REPLICATE,
    )
    rgba[target, 3] = np.clip(np.rint(blurred[target]), 0, 255).astype(np.uint8)
    return rgba, int(target.sum())


def post_filter(
    rgba: np.ndarray,
    mask: np.ndarray,
    delta_e: np.ndarray,
    background: RGB,
    config: MattingConfig,
    logger: PipelineLogger,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Apply the enabled post-filters in order

    Steps:
    1. Smart erosion (erosion_passes > 0)
    2. Color decontamination (decontaminate)
    3. Edge softening (soften_edges)

    Returns:
        (rgba, mask)
    """
    logger.log_info("Stage 7: Post-filtering...")
    summary = {}

    if config.erosion_passes > 0:
        max_delta_e = config.erosion_delta_e_factor * config.lab_threshold
        rgba, mask, removed = smart_erosion(
            rgba, mask, delta_e, max_delta_e, config.erosion_passes, config.erosion_radius
        )
        summary["erosion"] = {
            "passes": config.erosion_passes,
            "radius": config.erosion_radius,
            "max_delta_e": max_delta_e,
            "pixels_removed": removed,
        }
        logger.log_info(f"  Erosion removed {removed:,} fringe pixels")

    if config.decontaminate:
        rgba, cleaned, dropped = decontaminate_colors(
            rgba, mask, background, config.decontaminate_min_alpha
        )
        summary["decontamination"] = {
            "pixels_cleaned": cleaned,
            "pixels_dropped": dropped,
        }
        logger.log_info(f"  Decontaminated {cleaned:,} pixels, dropped {dropped:,}")

    if config.soften_edges:
        rgba, softened = soften_edges(rgba, mask, config.soften_sigma, config.soften_radius)
        summary["softening"] = {
            "sigma": config.soften_sigma,
            "radius": config.soften_radius,
            "pixels_softened": softened,
        }
        logger.log_info(f"  Softened {softened:,} edge pixels")

    logger.log_s7(filters=sorted(summary), **summary)
    return rgba, mask
