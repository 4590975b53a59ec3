"""Color value type and the small color-space helpers the keyer formulas use.

Channels are floats, conventionally in [0, 1]. HDR values above 1 (and
negative values from upstream grading) are carried through untouched; none
of the helpers clamp their input.
"""

import math
from dataclasses import dataclass

# Rec.601 luma weights
LUMA_R = 0.299
LUMA_G = 0.587
LUMA_B = 0.114


@dataclass(frozen=True)
class Color:
    """RGB triple. Value type, compared and hashed by its components."""

    r: float = 0.0
    g: float = 0.0
    b: float = 0.0

    def __iter__(self):
        yield self.r
        yield self.g
        yield self.b

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.r, self.g, self.b)

    def distance_to(self, other: "Color") -> float:
        """Euclidean distance in RGB space."""
        dr = self.r - other.r
        dg = self.g - other.g
        db = self.b - other.b
        return math.sqrt(dr * dr + dg * dg + db * db)

    @classmethod
    def from_value(cls, value) -> "Color":
        """Coerce a Color, an (r, g, b) sequence or a "#rrggbb" string.

        Raises:
            ValueError: If the value cannot be read as a color.
        """
        if isinstance(value, Color):
            return value
        if isinstance(value, str):
            return cls.from_hex(value)
        try:
            channels = [float(c) for c in value]
        except (TypeError, ValueError):
            raise ValueError(f"not a color: {value!r}") from None
        if len(channels) != 3:
            raise ValueError(f"color needs 3 channels, got {len(channels)}")
        return cls(*channels)

    @classmethod
    def from_hex(cls, text: str) -> "Color":
        """Parse "#rrggbb" (or "rrggbb") into [0, 1] channels."""
        digits = text.strip().lstrip("#")
        if len(digits) != 6:
            raise ValueError(f"hex color must have 6 digits: {text!r}")
        try:
            r, g, b = (int(digits[i : i + 2], 16) for i in (0, 2, 4))
        except ValueError:
            raise ValueError(f"invalid hex color: {text!r}") from None
        return cls(r / 255.0, g / 255.0, b / 255.0)

    def to_hex(self) -> str:
        channels = (max(0, min(255, round(c * 255))) for c in self)
        return "#" + "".join(f"{c:02x}" for c in channels)


def luma(color: Color) -> float:
    """Perceptual luminance."""
    return LUMA_R * color.r + LUMA_G * color.g + LUMA_B * color.b


def chroma_uv(color: Color) -> tuple[float, float]:
    """Project onto a 2-D chroma plane that ignores luminance."""
    return (color.r - color.g, color.b - color.g)


def saturation(color: Color) -> float:
    return max(color.r, color.g, color.b) - min(color.r, color.g, color.b)
