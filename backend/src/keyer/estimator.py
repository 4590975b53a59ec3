"""Alpha estimator — turns one RGB sample into a raw (pre-gain) alpha.

Four strategies, selected by KeyParameters.method:

    distance       RGB distance against a tolerance widened or narrowed
                   per hue by the six directional biases
    chroma         distance in a (r-g, b-g) plane, brightness ignored
    luma_weighted  distance alpha scaled by luminance similarity
    adaptive       distance/chroma blend picked by key saturation

All strategies are pure functions of (pixel, key, params).
"""

import math

from keyer.color import Color, chroma_uv, luma, saturation
from keyer.params import BIAS_SCALE, MIN_TOLERANCE, KeyMethod, KeyParameters

# Luminance difference at which the luma weight reaches zero
LUMA_FALLOFF = 0.5

# Adaptive blend: key saturation above this prefers chroma
ADAPTIVE_SATURATION_THRESHOLD = 0.5
ADAPTIVE_PRIMARY_WEIGHT = 0.7
ADAPTIVE_SECONDARY_WEIGHT = 0.3


def direction_matches(pixel: Color) -> tuple[float, float, float, float, float, float]:
    """How strongly the pixel leans toward red, green, blue, yellow, magenta, cyan."""
    return (
        pixel.r,
        pixel.g,
        pixel.b,
        min(pixel.r, pixel.g),
        min(pixel.r, pixel.b),
        min(pixel.g, pixel.b),
    )


def effective_tolerance(pixel: Color, params: KeyParameters) -> float:
    """Base variance plus the signed per-direction bias terms, floored."""
    pixel = Color.from_value(pixel)
    tolerance = params.variance
    for bias, match in zip(params.ranges, direction_matches(pixel)):
        tolerance += bias * BIAS_SCALE * match
    return max(MIN_TOLERANCE, tolerance)


def distance_alpha(pixel: Color, key: Color, params: KeyParameters) -> float:
    tolerance = effective_tolerance(pixel, params)
    return max(0.0, 1.0 - pixel.distance_to(key) / tolerance)


def chroma_alpha(pixel: Color, key: Color, params: KeyParameters) -> float:
    # Directional biases are not applied in the chroma plane.
    pu, pv = chroma_uv(pixel)
    ku, kv = chroma_uv(key)
    distance = math.hypot(pu - ku, pv - kv)
    return max(0.0, 1.0 - distance / max(params.variance, MIN_TOLERANCE))


def luma_weight(pixel: Color, key: Color) -> float:
    diff = abs(luma(pixel) - luma(key))
    return 1.0 - min(1.0, diff / LUMA_FALLOFF)


def luma_weighted_alpha(pixel: Color, key: Color, params: KeyParameters) -> float:
    return distance_alpha(pixel, key, params) * luma_weight(pixel, key)


def adaptive_weights(key: Color) -> tuple[float, float]:
    """(distance_weight, chroma_weight) for a key color."""
    if saturation(key) > ADAPTIVE_SATURATION_THRESHOLD:
        return ADAPTIVE_SECONDARY_WEIGHT, ADAPTIVE_PRIMARY_WEIGHT
    return ADAPTIVE_PRIMARY_WEIGHT, ADAPTIVE_SECONDARY_WEIGHT


def adaptive_alpha(pixel: Color, key: Color, params: KeyParameters) -> float:
    w_distance, w_chroma = adaptive_weights(key)
    return w_distance * distance_alpha(pixel, key, params) + w_chroma * chroma_alpha(
        pixel, key, params
    )


STRATEGIES = {
    KeyMethod.DISTANCE: distance_alpha,
    KeyMethod.CHROMA: chroma_alpha,
    KeyMethod.LUMA_WEIGHTED: luma_weighted_alpha,
    KeyMethod.ADAPTIVE: adaptive_alpha,
}


def estimate(pixel, key, params: KeyParameters) -> float:
    """Raw alpha for one pixel (before gain, clamp and invert).

    Args:
        pixel:  Color or (r, g, b) sequence.
        key:    Reference color, or None for params.key_color.
        params: Knob snapshot; selects the strategy.

    Returns:
        Alpha in [0, 1].
    """
    pixel = Color.from_value(pixel)
    key = params.key_color if key is None else Color.from_value(key)
    return STRATEGIES[params.method](pixel, key, params)
