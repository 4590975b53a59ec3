"""Vectorized matte evaluation — the estimator formulas over numpy arrays.

Same math as keyer.estimator / keyer.postprocess, applied to an (..., 3)
float array of RGB samples at once. Used by the frame effect; the scalar
path stays the reference for a single sample.

CRITICAL: all math in float64 so results track the scalar path.
"""

import numpy as np

from keyer.color import LUMA_B, LUMA_G, LUMA_R
from keyer.estimator import LUMA_FALLOFF, adaptive_weights
from keyer.params import BIAS_SCALE, MIN_TOLERANCE, KeyMethod, KeyParameters


def _as_rgb(rgb) -> np.ndarray:
    arr = np.asarray(rgb, dtype=np.float64)
    if arr.ndim == 0 or arr.shape[-1] != 3:
        raise ValueError(f"expected (..., 3) RGB array, got shape {arr.shape}")
    return arr


def _key(params: KeyParameters) -> np.ndarray:
    return np.array(params.key_color.as_tuple(), dtype=np.float64)


def effective_tolerance_array(rgb: np.ndarray, params: KeyParameters) -> np.ndarray:
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    matches = (
        r,
        g,
        b,
        np.minimum(r, g),
        np.minimum(r, b),
        np.minimum(g, b),
    )
    tolerance = np.full(rgb.shape[:-1], params.variance, dtype=np.float64)
    for bias, match in zip(params.ranges, matches):
        if bias != 0.0:
            tolerance += bias * BIAS_SCALE * match
    return np.maximum(MIN_TOLERANCE, tolerance)


def _distance(rgb: np.ndarray, params: KeyParameters) -> np.ndarray:
    diff = rgb - _key(params)
    distance = np.sqrt(np.sum(diff * diff, axis=-1))
    tolerance = effective_tolerance_array(rgb, params)
    return np.maximum(0.0, 1.0 - distance / tolerance)


def _chroma(rgb: np.ndarray, params: KeyParameters) -> np.ndarray:
    key = _key(params)
    du = (rgb[..., 0] - rgb[..., 1]) - (key[0] - key[1])
    dv = (rgb[..., 2] - rgb[..., 1]) - (key[2] - key[1])
    distance = np.hypot(du, dv)
    return np.maximum(0.0, 1.0 - distance / max(params.variance, MIN_TOLERANCE))


def _luma(rgb: np.ndarray) -> np.ndarray:
    return LUMA_R * rgb[..., 0] + LUMA_G * rgb[..., 1] + LUMA_B * rgb[..., 2]


def _luma_weighted(rgb: np.ndarray, params: KeyParameters) -> np.ndarray:
    key = params.key_color
    key_luma = LUMA_R * key.r + LUMA_G * key.g + LUMA_B * key.b
    weight = 1.0 - np.minimum(1.0, np.abs(_luma(rgb) - key_luma) / LUMA_FALLOFF)
    return _distance(rgb, params) * weight


def _adaptive(rgb: np.ndarray, params: KeyParameters) -> np.ndarray:
    w_distance, w_chroma = adaptive_weights(params.key_color)
    return w_distance * _distance(rgb, params) + w_chroma * _chroma(rgb, params)


_ARRAY_STRATEGIES = {
    KeyMethod.DISTANCE: _distance,
    KeyMethod.CHROMA: _chroma,
    KeyMethod.LUMA_WEIGHTED: _luma_weighted,
    KeyMethod.ADAPTIVE: _adaptive,
}


def estimate_array(rgb, params: KeyParameters) -> np.ndarray:
    """Raw alpha for every sample in an (..., 3) array. Returns shape (...)."""
    arr = _as_rgb(rgb)
    return _ARRAY_STRATEGIES[params.method](arr, params)


def finalize_array(raw: np.ndarray, params: KeyParameters) -> np.ndarray:
    """Gain, clamp, invert over an array of raw alphas."""
    alpha = np.clip(np.asarray(raw, dtype=np.float64) * params.gain, 0.0, 1.0)
    if params.invert:
        alpha = 1.0 - alpha
    return alpha


def compute_matte(rgb, params: KeyParameters) -> np.ndarray:
    """Final alpha in [0, 1] for every sample in an (..., 3) array."""
    return finalize_array(estimate_array(rgb, params), params)
