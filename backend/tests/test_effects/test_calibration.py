"""Tests for knob calibration and schema validation."""

import numpy as np
import pytest

from effects._calibration import (
    _test_frame,
    calibrate_all,
    dead_params,
    print_report,
    validate_curves,
)
from effects.registry import list_all


def test_all_curves_are_valid():
    errors = validate_curves()
    assert errors == [], f"Invalid curves found: {errors}"


def test_numeric_params_have_curve_and_unit():
    missing = []
    for effect in list_all():
        for key, pdef in effect["params"].items():
            if pdef.get("type") in ("float", "int"):
                if "curve" not in pdef or "unit" not in pdef:
                    missing.append(f"{effect['id']}.{key}")
    assert missing == [], f"Params missing curve/unit: {missing}"


def test_test_frame_is_deterministic():
    np.testing.assert_array_equal(_test_frame(), _test_frame())


@pytest.fixture(scope="module")
def results():
    return calibrate_all()


def test_calibration_covers_every_numeric_knob(results):
    swept = {(r["effect_id"], r["param"]) for r in results}
    for effect in list_all():
        for key, pdef in effect["params"].items():
            if pdef.get("type") in ("float", "int"):
                assert (effect["id"], key) in swept


def test_core_knobs_move_the_matte(results):
    dead = dead_params(results)
    for param in ("variance", "gain", "green_range", "key_g"):
        assert ("fx.color_key", param) not in dead


def test_dead_params_detects_flat_sweep():
    results = [
        {"effect_id": "fx.a", "param": "p", "mean_alpha_diff": 0.0},
        {"effect_id": "fx.a", "param": "p", "mean_alpha_diff": 0.0},
        {"effect_id": "fx.a", "param": "q", "mean_alpha_diff": 0.0},
        {"effect_id": "fx.a", "param": "q", "mean_alpha_diff": 3.5},
    ]
    assert dead_params(results) == [("fx.a", "p")]


def test_print_report(results, capsys):
    print_report(results)
    out = capsys.readouterr().out
    assert "fx.color_key" in out
    assert "variance" in out
