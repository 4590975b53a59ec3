"""Knob calibration — verifies every keyer knob produces a visible matte change.

Run:  python -m effects._calibration
"""

import sys

import numpy as np

from effects.registry import get, list_all


def _test_frame(w: int = 200, h: int = 150) -> np.ndarray:
    """Deterministic RGBA frame: noise with a green-screen-like left half."""
    rng = np.random.default_rng(42)
    frame = rng.integers(0, 256, (h, w, 4), dtype=np.uint8)
    screen = frame[:, : w // 2]
    screen[:, :, 0] = rng.integers(0, 80, (h, w // 2), dtype=np.uint8)
    screen[:, :, 1] = rng.integers(170, 256, (h, w // 2), dtype=np.uint8)
    screen[:, :, 2] = rng.integers(0, 80, (h, w // 2), dtype=np.uint8)
    return frame


def _mean_alpha_diff(a: np.ndarray, b: np.ndarray) -> float:
    """Mean absolute difference of the alpha channel."""
    return float(np.mean(np.abs(a[:, :, 3].astype(np.float32) - b[:, :, 3].astype(np.float32))))


VALID_CURVES = {"linear", "logarithmic", "exponential", "s-curve"}


def calibrate_all() -> list[dict]:
    """Sweep every numeric knob of every registered effect.

    Returns a list of result dicts:
      {effect_id, param, level_pct, value, mean_alpha_diff, curve, unit}
    """
    frame = _test_frame()
    results: list[dict] = []

    for effect_info in list_all():
        eid = effect_info["id"]
        params_schema = effect_info["params"]
        entry = get(eid)
        if entry is None:
            continue
        fn = entry["fn"]

        base_params = {k: pd.get("default", 0) for k, pd in params_schema.items()}
        kw = {"frame_index": 0, "seed": 0, "resolution": (200, 150)}
        ref_out, _ = fn(frame, dict(base_params), None, **kw)

        for param_key, pdef in params_schema.items():
            ptype = pdef.get("type")
            if ptype not in ("float", "int"):
                continue

            pmin = pdef.get("min", 0)
            pmax = pdef.get("max", 1)

            for level_pct in [0, 25, 50, 75, 100]:
                value = pmin + (pmax - pmin) * level_pct / 100.0
                if ptype == "int":
                    value = int(round(value))

                test_params = dict(base_params)
                test_params[param_key] = value
                out, _ = fn(frame, test_params, None, **kw)

                results.append(
                    {
                        "effect_id": eid,
                        "param": param_key,
                        "level_pct": level_pct,
                        "value": value,
                        "mean_alpha_diff": round(_mean_alpha_diff(ref_out, out), 2),
                        "curve": pdef.get("curve", "linear"),
                        "unit": pdef.get("unit", ""),
                    }
                )

    return results


def validate_curves() -> list[str]:
    """Check that every knob with a 'curve' field uses a valid curve name."""
    errors: list[str] = []
    for effect_info in list_all():
        for param_key, pdef in effect_info["params"].items():
            curve = pdef.get("curve")
            if curve is not None and curve not in VALID_CURVES:
                errors.append(
                    f"{effect_info['id']}.{param_key}: invalid curve '{curve}' "
                    f"(valid: {VALID_CURVES})"
                )
    return errors


def dead_params(results: list[dict]) -> list[tuple[str, str]]:
    """(effect_id, param) pairs whose full sweep never moved the matte."""
    moved: dict[tuple[str, str], float] = {}
    for r in results:
        key = (r["effect_id"], r["param"])
        moved[key] = max(moved.get(key, 0.0), r["mean_alpha_diff"])
    return [key for key, diff in moved.items() if diff == 0]


def print_report(results: list[dict]) -> None:
    print(
        f"{'Effect':<16} {'Param':<15} {'Level%':>6} {'Value':>8} {'AlphaDiff':>9} {'Curve':<8} {'Unit'}"
    )
    print("-" * 75)

    current_effect = ""
    for r in results:
        eid = r["effect_id"] if r["effect_id"] != current_effect else ""
        current_effect = r["effect_id"]
        print(
            f"{eid:<16} {r['param']:<15} {r['level_pct']:>5}% "
            f"{r['value']:>8.2f} {r['mean_alpha_diff']:>9.2f} {r['curve']:<8} {r['unit']}"
        )

    print("\n--- Knobs with no effect on the matte ---")
    dead = dead_params(results)
    for eid, param in dead:
        print(f"  WARNING: {eid}.{param} never changed the alpha channel")
    if not dead:
        print("  Every knob moves the matte.")


if __name__ == "__main__":
    curve_errors = validate_curves()
    if curve_errors:
        print("CURVE VALIDATION ERRORS:")
        for e in curve_errors:
            print(f"  {e}")
        sys.exit(1)

    print_report(calibrate_all())
