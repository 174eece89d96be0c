"""
Exceptions raised by the matting pipeline
"""

from typing import Optional


class MattingError(Exception):
    """Base exception for matting pipeline errors"""

    pass


class InvalidGeometryError(MattingError):
    """Raised when a raster buffer does not match its declared geometry"""

    def __init__(
        self,
        message: str,
        width: int,
        height: int,
        channels: Optional[int] = None,
        length: Optional[int] = None,
    ):
        super().__init__(message)
        self.width = width
        self.height = height
        self.channels = channels
        self.length = length


class ImageFileError(MattingError):
    """Raised when an input image file cannot be read or decoded"""

    pass
