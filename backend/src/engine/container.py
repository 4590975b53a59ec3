"""Effect container — runs a keyer effect with sanitizing, validation and mix.

Pipeline: sanitize params → process → validate → mix → mask
Effect authors write only the processing stage. Frames are uint8 RGBA, or RGB
when the effect adds the alpha channel.
"""

import logging
import math

import numpy as np
import sentry_sdk

from keyer.params import KeyParameterError

logger = logging.getLogger(__name__)


def _capture_with_context(e: Exception, effect_id: str, extra: dict):
    """Capture exception to Sentry with effect-level context and fingerprint dedup."""
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("effect_id", effect_id)
        scope.fingerprint = ["effect-crash", effect_id, type(e).__name__]
        scope.set_context("effect", extra)
        sentry_sdk.capture_exception(e, scope=scope)


def _blend(dry: np.ndarray, wet: np.ndarray, amount) -> np.ndarray:
    return np.clip(
        dry.astype(np.float32) * (1.0 - amount) + wet.astype(np.float32) * amount,
        0,
        255,
    ).astype(np.uint8)


def _dry_reference(frame: np.ndarray, wet: np.ndarray) -> np.ndarray:
    """Input frame in the output's layout, for mix and mask.

    An effect may add an alpha channel to an RGB frame; the RGB input then
    counts as fully opaque.
    """
    if wet.shape == frame.shape:
        return frame
    if (
        frame.ndim == 3
        and wet.ndim == 3
        and frame.shape[2] == 3
        and wet.shape == frame.shape[:2] + (4,)
    ):
        opaque = np.full(frame.shape[:2] + (1,), 255, dtype=frame.dtype)
        return np.concatenate([frame, opaque], axis=2)
    raise ValueError(f"Effect returned shape {wet.shape}, expected {frame.shape}")


class EffectContainer:
    """Wraps an effect's apply() so a failing effect never breaks the frame.

    A failure in the effect or in mix/mask is logged, sent to Sentry and
    recorded on last_error; the input frame is returned unchanged. Invalid knob values (KeyParameterError) are
    integration bugs and propagate to the caller.
    """

    def __init__(self, effect_fn, effect_id: str):
        self.effect_fn = effect_fn
        self.effect_id = effect_id
        self.last_error: Exception | None = None

    def process(
        self,
        frame: np.ndarray,
        params: dict,
        state_in: dict | None,
        *,
        frame_index: int,
        resolution: tuple[int, int],
    ) -> tuple[np.ndarray, dict | None]:
        self.last_error = None

        # Drop NaN/Inf so the effect uses its default for that knob
        effect_params = {
            k: v
            for k, v in params.items()
            if not (isinstance(v, float) and not math.isfinite(v))
        }
        mask = effect_params.pop("_mask", None)
        mix = effect_params.pop("_mix", 1.0)
        seed = int(effect_params.pop("seed", 0))

        # Keys only, no values
        sentry_ctx = {
            "frame_index": frame_index,
            "param_keys": list(effect_params.keys()),
            "resolution": resolution,
            "frame_shape": list(frame.shape),
        }

        try:
            wet_frame, state_out = self.effect_fn(
                frame,
                effect_params,
                state_in,
                frame_index=frame_index,
                seed=seed,
                resolution=resolution,
            )
        except KeyParameterError:
            raise
        except Exception as e:
            return self._fail(e, frame, state_in, sentry_ctx, "failed")

        try:
            if not isinstance(wet_frame, np.ndarray):
                raise TypeError(
                    f"Effect returned {type(wet_frame).__name__}, expected ndarray"
                )
            dry_frame = _dry_reference(frame, wet_frame)
            if wet_frame.dtype != np.uint8:
                wet_frame = np.clip(wet_frame, 0, 255).astype(np.uint8)
        except (TypeError, ValueError) as e:
            return self._fail(e, frame, state_in, sentry_ctx, "produced invalid output")

        try:
            mix = float(mix)
            output = wet_frame
            if mix < 1.0:
                output = _blend(dry_frame, output, max(0.0, mix))
            if mask is not None:
                # (H, W) garbage mask, 1.0 = keyed result, 0.0 = untouched input
                mask = np.asarray(mask, dtype=np.float32)
                if mask.shape != frame.shape[:2]:
                    raise ValueError(
                        f"Mask shape {mask.shape}, expected {frame.shape[:2]}"
                    )
                output = _blend(dry_frame, output, mask[:, :, np.newaxis])
        except Exception as e:
            return self._fail(e, frame, state_in, sentry_ctx, "mix/mask failed")

        return output, state_out

    def _fail(self, e, frame, state_in, sentry_ctx, what):
        self.last_error = e
        _capture_with_context(e, self.effect_id, sentry_ctx)
        logger.error(
            "Effect %s %s on frame %d: %s",
            self.effect_id,
            what,
            sentry_ctx["frame_index"],
            type(e).__name__,
        )
        logger.debug("Effect %s error detail: %s", self.effect_id, e)
        return frame.copy(), state_in
