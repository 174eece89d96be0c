"""
MattingPipeline: Main orchestration class
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

from .color import LabCache, delta_e_map
from .config import MattingConfig
from .crop import autocrop, pretrim_to_content
from .errors import ImageFileError, InvalidGeometryError
from .logger import PipelineLogger
from .stages import (
    composite,
    estimate_background_color,
    fill_islands,
    post_filter,
    refine,
    relax,
    segment,
)
from .types import RGB

MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB


@dataclass
class MattingResult:
    """Output of one pipeline invocation"""

    rgba: np.ndarray  # (H, W, 4) uint8
    mask: np.ndarray  # (H, W) uint8 MaskState values
    background: RGB
    stats: dict = field(default_factory=dict)

    @property
    def width(self) -> int:
        return self.rgba.shape[1]

    @property
    def height(self) -> int:
        return self.rgba.shape[0]

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.rgba, "RGBA")


def normalize_raster(
    raster, width: int, height: int, channels: Optional[int] = None
) -> np.ndarray:
    """
    Validate a raw buffer against its geometry and return an (H, W, 4) copy

    Args:
        raster: numpy uint8 array or bytes-like buffer of RGB/RGBA samples
        width: Image width
        height: Image height
        channels: 3 or 4, inferred from the buffer length when None

    Raises:
        InvalidGeometryError: If the buffer does not match the geometry
    """
    if width < 0 or height < 0:
        raise InvalidGeometryError(
            f"Negative dimensions: {width}x{height}", width, height, channels
        )

    if isinstance(raster, np.ndarray):
        if raster.dtype != np.uint8:
            raise InvalidGeometryError(
                f"Expected uint8 samples, got {raster.dtype}", width, height, channels
            )
        flat = raster.reshape(-1)
    else:
        flat = np.frombuffer(bytes(raster), dtype=np.uint8)

    length = int(flat.size)
    pixels = width * height

    if channels is None:
        if pixels == 0:
            channels = 4
        elif length == pixels * 4:
            channels = 4
        elif length == pixels * 3:
            channels = 3
        else:
            raise InvalidGeometryError(
                f"Buffer of {length} bytes does not fit {width}x{height} RGB or RGBA",
                width,
                height,
                None,
                length,
            )

    if channels not in (3, 4):
        raise InvalidGeometryError(
            f"Unsupported channel count: {channels}", width, height, channels, length
        )
    if length != pixels * channels:
        raise InvalidGeometryError(
            f"Buffer length {length} != {width}x{height}x{channels}",
            width,
            height,
            channels,
            length,
        )

    image = flat.reshape(height, width, channels)
    if channels == 3:
        alpha = np.full((height, width, 1), 255, dtype=np.uint8)
        return np.concatenate([image, alpha], axis=2)
    return image.copy()


class MattingPipeline:
    """
    Multi-stage background matting pipeline

    Stages:
    1. Background Color Estimation (corner buckets)
    2. Border Flood Fill (Lab delta-E)
    3. Interior Island Detection
    4. Transition Refinement
    5. Boundary Relaxation
    6. Alpha Compositing
    7. Post-Filters (erosion, decontamination, softening)

    Holds no per-image state, so one instance per thread is enough for
    concurrent use.
    """

    def __init__(
        self,
        config: Optional[MattingConfig] = None,
        logger: Optional[PipelineLogger] = None,
    ):
        self.logger = logger or PipelineLogger()
        self.config = (config or MattingConfig()).validated(self.logger)

    def run(
        self,
        raster,
        width: int,
        height: int,
        channels: Optional[int] = None,
        background: Optional[RGB] = None,
    ) -> MattingResult:
        """
        Matte one raster buffer

        Args:
            raster: RGB or RGBA uint8 samples (numpy array or bytes-like)
            width: Image width
            height: Image height
            channels: 3 or 4; inferred when None
            background: Background color; estimated when None and not set
                in the config

        Returns:
            MattingResult with the new RGBA raster and final mask

        Raises:
            InvalidGeometryError: If the buffer does not match the geometry
        """
        owns_record = self.logger.current_image is None
        if owns_record:
            self.logger.start_image("<buffer>", width=width, height=height)

        try:
            return self._run(raster, width, height, channels, background)
        except InvalidGeometryError as e:
            self.logger.log_error(f"Invalid raster: {e}")
            raise
        finally:
            if owns_record:
                self.logger.finish_image()

    def _run(self, raster, width, height, channels, background) -> MattingResult:
        config = self.config
        rgba = normalize_raster(raster, width, height, channels)

        if rgba.size == 0:
            self.logger.log_info("  Empty image, nothing to matte")
            return MattingResult(
                rgba=rgba,
                mask=np.zeros((height, width), dtype=np.uint8),
                background=background or config.background or RGB(255, 255, 255),
                stats={"empty": True},
            )

        # Stage 1: Background color
        if background is None:
            background = config.background
        if background is None:
            background = estimate_background_color(rgba, config, self.logger)
        else:
            self.logger.log_s1(method="supplied", background_rgb=background.as_tuple())

        lab_threshold = config.lab_threshold
        transition_threshold = config.transition_threshold

        cache = LabCache(config.lab_cache_size)
        try:
            delta_e = delta_e_map(rgba[..., :3], background, cache)
            cache_stats = {"hits": cache.hits, "misses": cache.misses, "size": len(cache)}
        finally:
            cache.clear()

        # Stages 2-5: Mask
        mask = segment(delta_e, lab_threshold, transition_threshold, self.logger)
        mask = fill_islands(
            mask,
            delta_e,
            lab_threshold,
            transition_threshold,
            config.min_island_size,
            self.logger,
        )
        mask = refine(mask, config.refine_promote_min, config.refine_demote_min, self.logger)
        mask = relax(
            mask,
            delta_e,
            lab_threshold,
            config.relax_passes,
            config.relax_background_factor,
            config.relax_transition_factor,
            self.logger,
        )

        # Stage 6: Alpha
        result = composite(
            rgba, mask, delta_e, lab_threshold, transition_threshold, self.logger
        )

        # Stage 7: Post-filters
        result, mask = post_filter(result, mask, delta_e, background, config, self.logger)

        stats = {
            "background": background.as_tuple(),
            "lab_threshold": lab_threshold,
            "transition_threshold": transition_threshold,
            "lab_cache": cache_stats,
            "transparent_pixels": int(np.count_nonzero(result[..., 3] == 0)),
        }
        return MattingResult(rgba=result, mask=mask, background=background, stats=stats)

    def process(self, input_path: Path) -> Path:
        """
        Process a single image file through the full pipeline

        Args:
            input_path: Path to input image

        Returns:
            Path to output PNG

        Raises:
            FileNotFoundError: If input doesn't exist
            ImageFileError: If the file cannot be read or decoded
        """
        if not input_path.exists():
            raise FileNotFoundError(f"Input image not found: {input_path}")

        self.logger.start_image(input_path)
        self.logger.log_info(f"Processing: {input_path}")

        try:
            image = self._load_image(input_path)
            self.logger.log_info(f"  Image size: {image.width}x{image.height}")

            config = self.config
            background = config.background
            if background is None:
                background = estimate_background_color(
                    np.asarray(image), config, self.logger
                )

            # Coarse crop before matting
            if config.pretrim:
                orig_size = image.size
                image = pretrim_to_content(
                    image, background, config.pretrim_threshold
                )
                if image.size != orig_size:
                    self.logger.log_info(
                        f"  Pre-trimmed {orig_size[0]}x{orig_size[1]} → "
                        f"{image.width}x{image.height}"
                    )

            matted = self.run(
                np.asarray(image, dtype=np.uint8),
                image.width,
                image.height,
                channels=4,
                background=background,
            )
            result_img = matted.to_image()

            # Autocrop if requested
            if config.autocrop:
                orig_size = result_img.size
                result_img = autocrop(result_img)
                if result_img.size != orig_size:
                    self.logger.log_info(
                        f"  Cropped {orig_size[0]}x{orig_size[1]} → "
                        f"{result_img.width}x{result_img.height}"
                    )

            output_path = self._compute_output_path(input_path)
            result_img.save(output_path, "PNG", optimize=True)
            self.logger.log_info(f"  Saved → {output_path}")

            self.logger.save_image_log()
            return output_path

        except Exception as e:
            self.logger.log_error(f"Pipeline failed: {e}", exc_info=True)
            self.logger.save_image_log()
            raise

    def _load_image(self, input_path: Path) -> Image.Image:
        """Validate and decode an image file to RGBA"""
        if not input_path.is_file():
            raise ImageFileError(f"Not a file: {input_path}")

        file_size = input_path.stat().st_size
        if file_size == 0:
            raise ImageFileError(f"File is empty: {input_path}")
        if file_size > MAX_FILE_SIZE:
            raise ImageFileError(
                f"File too large: {file_size / 1024 / 1024:.1f}MB "
                f"(max {MAX_FILE_SIZE / 1024 / 1024:.0f}MB)"
            )

        try:
            with Image.open(input_path) as img:
                return img.convert("RGBA")
        except UnidentifiedImageError as e:
            raise ImageFileError(f"Cannot identify image format: {e}") from e
        except OSError as e:
            raise ImageFileError(f"Error reading image: {e}") from e

    def _compute_output_path(self, input_path: Path) -> Path:
        if self.config.output_path is not None:
            return self.config.output_path

        # Default: same directory, add _transparent suffix
        return input_path.with_name(f"{input_path.stem}_transparent.png")


def remove_background(
    raster,
    width: int,
    height: int,
    background: Optional[RGB] = None,
    config: Optional[MattingConfig] = None,
    channels: Optional[int] = None,
    logger: Optional[PipelineLogger] = None,
) -> MattingResult:
    """Matte one raster with a fresh pipeline"""
    pipeline = MattingPipeline(config=config, logger=logger)
    return pipeline.run(raster, width, height, channels=channels, background=background)
