"""
MattingConfig: Configuration for the matting pipeline
"""

import math
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

from .types import RGB

MAX_THRESHOLD = 255.0
MAX_EROSION_PASSES = 10

FLOAT_FIELDS = (
    "threshold",
    "lab_threshold_factor",
    "lab_threshold_floor",
    "transition_factor",
    "relax_background_factor",
    "relax_transition_factor",
    "erosion_delta_e_factor",
    "decontaminate_min_alpha",
    "soften_sigma",
)


@dataclass
class MattingConfig:
    """Configuration for the matting pipeline"""

    # Perceptual distance (delta-E units) below which a pixel is background
    threshold: float = 15.0
    lab_threshold_factor: float = 0.8
    lab_threshold_floor: float = 2.0
    transition_factor: float = 1.3

    # Stage 1: Background Estimation
    background: Optional[RGB] = None  # Skip estimation when set
    sample_block_size: int = 5
    sample_edge_midpoints: bool = False
    bucket_step: int = 10

    # Stage 3: Interior Islands
    min_island_size: int = 100

    # Stage 4: Transition Refinement
    refine_promote_min: int = 3
    refine_demote_min: int = 5

    # Stage 5: Boundary Relaxation
    relax_passes: int = 5
    relax_background_factor: float = 1.5
    relax_transition_factor: float = 2.2

    # Stage 7: Post-Filters
    erosion_passes: int = 1
    erosion_radius: int = 1
    erosion_delta_e_factor: float = 2.2
    decontaminate: bool = False
    decontaminate_min_alpha: float = 0.1
    soften_edges: bool = False
    soften_sigma: float = 0.8
    soften_radius: int = 1

    # Lab memoization (per invocation)
    lab_cache_size: int = 4096

    # File processing
    pretrim: bool = True
    pretrim_threshold: int = 15  # Per-channel RGB difference, not delta-E
    autocrop: bool = True
    output_path: Optional[Path] = None

    @property
    def exact_match(self) -> bool:
        """Threshold 0 keeps only pixels identical to the background"""
        return self.threshold <= 0

    @property
    def lab_threshold(self) -> float:
        if self.exact_match:
            return 0.0
        return max(self.threshold * self.lab_threshold_factor, self.lab_threshold_floor)

    @property
    def transition_threshold(self) -> float:
        return self.lab_threshold * self.transition_factor

    def validated(self, logger=None) -> "MattingConfig":
        """
        Return a copy with out-of-range values clamped

        Invalid parameters are never fatal; each clamp is reported through
        the logger when one is given. Non-finite floats fall back to their
        defaults.
        """
        changes = {}

        def clamp(name, value):
            changes[name] = value
            if logger is not None:
                logger.log_warning(
                    f"Invalid {name}={getattr(self, name)!r}, using {value!r}"
                )

        def current(name):
            return changes.get(name, getattr(self, name))

        for f in fields(self):
            if f.name in FLOAT_FIELDS and not math.isfinite(getattr(self, f.name)):
                clamp(f.name, f.default)

        if current("threshold") < 0:
            clamp("threshold", 0.0)
        elif current("threshold") > MAX_THRESHOLD:
            clamp("threshold", MAX_THRESHOLD)
        if current("min_island_size") < 1:
            clamp("min_island_size", 1)
        if not 0 <= self.erosion_passes <= MAX_EROSION_PASSES:
            clamp("erosion_passes", max(0, min(MAX_EROSION_PASSES, self.erosion_passes)))
        if self.erosion_radius < 1:
            clamp("erosion_radius", 1)
        if self.relax_passes < 0:
            clamp("relax_passes", 0)
        if current("soften_sigma") <= 0:
            clamp("soften_sigma", 0.8)
        if self.soften_radius < 1:
            clamp("soften_radius", 1)
        if not 0 < current("decontaminate_min_alpha") < 1:
            clamp("decontaminate_min_alpha", 0.1)
        if current("transition_factor") < 1:
            clamp("transition_factor", 1.0)
        if self.sample_block_size < 1:
            clamp("sample_block_size", 5)
        if self.bucket_step < 1:
            clamp("bucket_step", 1)
        if self.lab_cache_size < 1:
            clamp("lab_cache_size", 4096)
        if not 0 <= self.pretrim_threshold <= 255:
            clamp("pretrim_threshold", max(0, min(255, self.pretrim_threshold)))

        return replace(self, **changes) if changes else self
