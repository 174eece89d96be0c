"""
Multi-Stage Background Matting Pipeline
"""

from .config import MattingConfig
from .errors import ImageFileError, InvalidGeometryError, MattingError
from .logger import PipelineLogger
from .pipeline import MattingPipeline, MattingResult, remove_background
from .types import RGB, Lab, MaskState

__all__ = [
    "MattingPipeline",
    "MattingResult",
    "MattingConfig",
    "PipelineLogger",
    "remove_background",
    "MattingError",
    "InvalidGeometryError",
    "ImageFileError",
    "RGB",
    "Lab",
    "MaskState",
]
