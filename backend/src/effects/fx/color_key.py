"""Color Keyer — six-direction color key writing a computed alpha channel."""

import numpy as np

from keyer.matte import compute_matte
from keyer.params import PARAMS as KEY_PARAMS
from keyer.params import KeyParameters

EFFECT_ID = "fx.color_key"
EFFECT_NAME = "Color Keyer"
EFFECT_CATEGORY = "key"


def _channel_param(name: str, default: float) -> dict:
    return {
        "type": "float",
        "min": 0.0,
        "max": 1.0,
        "default": default,
        "label": f"Key {name}",
        "curve": "linear",
        "unit": "",
        "description": f"{name} component of the color to key out",
    }


# Flat knobs: the key color is split into three floats for the host panel
PARAMS: dict = {
    "key_r": _channel_param("Red", 0.0),
    "key_g": _channel_param("Green", 1.0),
    "key_b": _channel_param("Blue", 0.0),
    **{k: v for k, v in KEY_PARAMS.items() if k != "key_color"},
}


def key_parameters(params: dict) -> KeyParameters:
    """Build KeyParameters from the flat effect knobs.

    Raises:
        KeyParameterError: On an unknown method or non-numeric knob.
    """
    options = dict(params)
    if "key_color" not in options:
        options["key_color"] = (
            options.pop("key_r", PARAMS["key_r"]["default"]),
            options.pop("key_g", PARAMS["key_g"]["default"]),
            options.pop("key_b", PARAMS["key_b"]["default"]),
        )
    return KeyParameters.from_options(options)


def apply(
    frame: np.ndarray,
    params: dict,
    state_in: dict | None = None,
    *,
    frame_index: int,
    seed: int,
    resolution: tuple[int, int],
) -> tuple[np.ndarray, dict | None]:
    """Color key — RGB passes through, alpha is replaced by the matte. Stateless."""
    key_params = key_parameters(params)

    rgb = frame[:, :, :3]
    if frame.size == 0:
        return np.zeros(frame.shape[:2] + (4,), dtype=np.uint8), None

    matte = compute_matte(rgb.astype(np.float64) / 255.0, key_params)
    new_alpha = np.rint(matte * 255.0).astype(np.uint8)
    output = np.concatenate([rgb, new_alpha[:, :, np.newaxis]], axis=2)
    return output, None
