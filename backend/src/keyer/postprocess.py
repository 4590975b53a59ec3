"""Post-process — gain, clamp, invert. Always in that order."""

from keyer.estimator import estimate
from keyer.params import KeyParameters


def finalize(raw_alpha: float, params: KeyParameters) -> float:
    """Apply gain, clamp to [0, 1], then invert if requested.

    Clamping happens before inversion, so an over-driven alpha of 2.0
    inverts to 0.0, never to a negative value.
    """
    alpha = raw_alpha * params.gain
    alpha = max(0.0, min(1.0, alpha))
    if params.invert:
        alpha = 1.0 - alpha
    return alpha


def key_alpha(pixel, params: KeyParameters) -> float:
    """Final alpha for one pixel against params.key_color."""
    return finalize(estimate(pixel, None, params), params)
