"""
Value types shared by all pipeline stages
"""

import math
import numbers
from dataclasses import dataclass
from enum import IntEnum


class MaskState(IntEnum):
    """Per-pixel classification stored in the mask buffer"""

    UNCLASSIFIED = 0
    BACKGROUND = 1
    TRANSITION = 2
    FOREGROUND = 3


@dataclass(frozen=True)
class RGB:
    """8-bit sRGB color"""

    r: int
    g: int
    b: int

    def __post_init__(self):
        for name in ("r", "g", "b"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise ValueError(f"RGB.{name} must be an integer, got {value!r}")
            if not 0 <= value <= 255:
                raise ValueError(f"RGB.{name} out of range 0-255: {value}")
            object.__setattr__(self, name, int(value))

    @classmethod
    def from_hex(cls, value: str) -> "RGB":
        """Parse '#rrggbb' or 'rrggbb'"""
        digits = value.strip().lstrip("#")
        if len(digits) != 6:
            raise ValueError(f"Expected a 6-digit hex color, got {value!r}")
        try:
            return cls(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))
        except ValueError:
            raise ValueError(f"Invalid hex color: {value!r}") from None

    @classmethod
    def from_sequence(cls, values) -> "RGB":
        r, g, b = (int(round(float(v))) for v in values[:3])
        return cls(r, g, b)

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.r, self.g, self.b)

    def to_hex(self) -> str:
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}"


@dataclass(frozen=True)
class Lab:
    """CIE L*a*b* color (D65 white point)"""

    l: float  # noqa: E741
    a: float
    b: float

    def __post_init__(self):
        for name in ("l", "a", "b"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"Lab.{name} must be finite")

    def delta_e(self, other: "Lab") -> float:
        """CIE76 color difference"""
        return math.sqrt(
            (self.l - other.l) ** 2 + (self.a - other.a) ** 2 + (self.b - other.b) ** 2
        )

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.l, self.a, self.b)
