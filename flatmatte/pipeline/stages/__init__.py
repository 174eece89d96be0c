"""
Pipeline Stages
"""

from .s1_background import estimate_background_color
from .s2_segmentation import segment
from .s3_islands import fill_islands
from .s4_transition import refine
from .s5_boundary import relax
from .s6_composite import composite
from .s7_postfilters import post_filter

__all__ = [
    "estimate_background_color",
    "segment",
    "fill_islands",
    "refine",
    "relax",
    "composite",
    "post_filter",
]
