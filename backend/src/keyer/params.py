"""Key parameters — immutable snapshot of the keyer knobs.

A KeyParameters value is built once per frame (or tile) from the user-facing
options and is only read during evaluation, so one instance can be shared by
any number of worker threads.
"""

import dataclasses
import logging
import math
import numbers
from dataclasses import dataclass
from enum import Enum

from keyer.color import Color

logger = logging.getLogger(__name__)

# Effective tolerance never drops below this (division safety)
MIN_TOLERANCE = 0.001

# Each unit of directional bias widens tolerance by 0.1 * match
BIAS_SCALE = 0.1

DIRECTIONS = ("red", "green", "blue", "yellow", "magenta", "cyan")

DEFAULT_KEY_COLOR = Color(0.0, 1.0, 0.0)
DEFAULT_VARIANCE = 0.3
DEFAULT_GAIN = 1.0


class KeyParameterError(ValueError):
    """Invalid knob value (unknown method, malformed color). Never per-pixel."""


class KeyMethod(Enum):
    DISTANCE = "distance"
    CHROMA = "chroma"
    LUMA_WEIGHTED = "luma_weighted"
    ADAPTIVE = "adaptive"

    @classmethod
    def parse(cls, value) -> "KeyMethod":
        """Resolve a method from an enum member, its name/value or a knob index.

        Raises:
            KeyParameterError: For anything that does not name one of the four methods.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, numbers.Integral) and not isinstance(value, bool):
            members = list(cls)
            if 0 <= value < len(members):
                return members[int(value)]
            raise KeyParameterError(f"keying method index out of range: {value}")
        if isinstance(value, str):
            token = value.strip().lower().replace(" ", "_").replace("-", "_")
            for member in cls:
                if token in (member.value, member.name.lower()):
                    return member
        raise KeyParameterError(
            f"unknown keying method {value!r} "
            f"(valid: {', '.join(m.value for m in cls)})"
        )


_TRUE_WORDS = ("true", "yes", "on", "1")
_FALSE_WORDS = ("false", "no", "off", "0", "")


def _as_float(name: str, value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise KeyParameterError(f"{name} must be a number, got {value!r}") from None


def _as_bool(name: str, value) -> bool:
    """Flag from a bool, a number or a saved "true"/"false" string."""
    if isinstance(value, str):
        token = value.strip().lower()
        if token in _TRUE_WORDS:
            return True
        if token in _FALSE_WORDS:
            return False
        raise KeyParameterError(f"{name} must be true or false, got {value!r}")
    if isinstance(value, (bool, numbers.Number)):
        return bool(value)
    raise KeyParameterError(f"{name} must be true or false, got {value!r}")


@dataclass(frozen=True)
class KeyParameters:
    """Knob snapshot consumed by the alpha estimator and finalize()."""

    key_color: Color = DEFAULT_KEY_COLOR
    variance: float = DEFAULT_VARIANCE
    range_red: float = 0.0
    range_green: float = 0.0
    range_blue: float = 0.0
    range_yellow: float = 0.0
    range_magenta: float = 0.0
    range_cyan: float = 0.0
    gain: float = DEFAULT_GAIN
    invert: bool = False
    method: KeyMethod = KeyMethod.DISTANCE

    def __post_init__(self):
        # Frozen: coerce through object.__setattr__
        try:
            key_color = Color.from_value(self.key_color)
        except ValueError as e:
            raise KeyParameterError(f"invalid key_color: {e}") from e
        object.__setattr__(self, "key_color", key_color)
        object.__setattr__(self, "method", KeyMethod.parse(self.method))
        object.__setattr__(self, "invert", _as_bool("invert", self.invert))
        for name in ("variance", "gain") + tuple(f"range_{d}" for d in DIRECTIONS):
            object.__setattr__(self, name, _as_float(name, getattr(self, name)))

    @property
    def ranges(self) -> tuple[float, float, float, float, float, float]:
        """Directional biases in (red, green, blue, yellow, magenta, cyan) order."""
        return (
            self.range_red,
            self.range_green,
            self.range_blue,
            self.range_yellow,
            self.range_magenta,
            self.range_cyan,
        )

    def replace(self, **changes) -> "KeyParameters":
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_options(cls, options: dict) -> "KeyParameters":
        """Build parameters from the flat option mapping (see PARAMS).

        Missing keys take their defaults, unknown keys are ignored and
        non-finite numbers fall back to the default. Values outside the
        declared ranges are kept as-is.
        """
        kwargs: dict = {}

        if "key_color" in options:
            kwargs["key_color"] = options["key_color"]

        for option, field_name in _FLOAT_OPTIONS.items():
            if option not in options:
                continue
            value = _as_float(option, options[option])
            if not math.isfinite(value):
                logger.debug("Non-finite %s ignored, using default", option)
                continue
            kwargs[field_name] = value

        if "invert" in options:
            kwargs["invert"] = _as_bool("invert", options["invert"])
        if "method" in options:
            kwargs["method"] = options["method"]

        return cls(**kwargs)

    def to_options(self) -> dict:
        """Inverse of from_options(); JSON-serializable."""
        options: dict = {"key_color": list(self.key_color.as_tuple())}
        for option, field_name in _FLOAT_OPTIONS.items():
            options[option] = getattr(self, field_name)
        options["invert"] = self.invert
        options["method"] = self.method.value
        return options


_FLOAT_OPTIONS = {
    "variance": "variance",
    **{f"{d}_range": f"range_{d}" for d in DIRECTIONS},
    "gain": "gain",
}


def _range_param(direction: str) -> dict:
    return {
        "type": "float",
        "min": -3.0,
        "max": 3.0,
        "default": 0.0,
        "label": direction.capitalize(),
        "curve": "linear",
        "unit": "",
        "description": (
            f"Expand keying toward {direction} (+) or away from {direction} (-)"
        ),
    }


PARAMS: dict = {
    "key_color": {
        "type": "color",
        "default": list(DEFAULT_KEY_COLOR.as_tuple()),
        "label": "Key Color",
        "description": "The base color to key out",
    },
    "variance": {
        "type": "float",
        "min": MIN_TOLERANCE,
        "max": 2.0,
        "default": DEFAULT_VARIANCE,
        "label": "Tolerance",
        "curve": "linear",
        "unit": "",
        "description": "Overall color matching tolerance. Lower = more precise",
    },
    **{f"{d}_range": _range_param(d) for d in DIRECTIONS},
    "gain": {
        "type": "float",
        "min": 0.0,
        "max": 5.0,
        "default": DEFAULT_GAIN,
        "label": "Gain",
        "curve": "linear",
        "unit": "x",
        "description": "Alpha contrast adjustment. >1.0 increases contrast",
    },
    "invert": {
        "type": "bool",
        "default": False,
        "label": "Invert",
        "description": "Invert the generated matte",
    },
    "method": {
        "type": "choice",
        "options": [m.value for m in KeyMethod],
        "default": KeyMethod.DISTANCE.value,
        "label": "Keying Method",
        "description": (
            "distance: RGB distance with color expansion; "
            "chroma: ignores brightness; "
            "luma_weighted: considers brightness similarity; "
            "adaptive: blends distance and chroma by key saturation"
        ),
    },
}


# Starting points for common footage problems
PRESETS: dict[str, dict] = {
    "green_screen_yellow_spill": {
        "key_color": (0.0, 1.0, 0.0),
        "green_range": 1.5,
        "yellow_range": 1.0,
    },
    "blue_screen_cyan_cast": {
        "key_color": (0.0, 0.0, 1.0),
        "blue_range": 2.0,
        "cyan_range": 1.0,
    },
    "red_object_avoid_orange": {
        "key_color": (1.0, 0.0, 0.0),
        "red_range": 1.0,
        "yellow_range": -0.5,
    },
    "warm_skin_tone": {
        "red_range": 0.8,
        "magenta_range": 0.3,
        "yellow_range": 0.5,
    },
}


def preset(name: str, **overrides) -> KeyParameters:
    """Parameters for a named preset, with option-style overrides.

    Raises:
        KeyError: If the preset name is unknown.
    """
    if name not in PRESETS:
        raise KeyError(f"unknown preset: {name}")
    return KeyParameters.from_options({**PRESETS[name], **overrides})
