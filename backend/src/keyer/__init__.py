"""Six-direction color keyer (keyer.* namespace)."""

from keyer.color import Color
from keyer.estimator import effective_tolerance, estimate
from keyer.matte import compute_matte, estimate_array, finalize_array
from keyer.params import KeyMethod, KeyParameters, preset
from keyer.postprocess import finalize, key_alpha

__all__ = [
    "Color",
    "KeyMethod",
    "KeyParameters",
    "compute_matte",
    "effective_tolerance",
    "estimate",
    "estimate_array",
    "finalize",
    "finalize_array",
    "key_alpha",
    "preset",
]
