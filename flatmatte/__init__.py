"""
flatmatte: alpha mattes for images on a flat background
"""

from .pipeline import (
    RGB,
    MaskState,
    MattingConfig,
    MattingPipeline,
    MattingResult,
    PipelineLogger,
    remove_background,
)

__version__ = "1.0.0"

__all__ = [
    "MattingPipeline",
    "MattingResult",
    "MattingConfig",
    "PipelineLogger",
    "remove_background",
    "RGB",
    "MaskState",
]
