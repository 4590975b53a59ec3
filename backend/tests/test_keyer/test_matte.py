"""Tests for keyer.matte — vectorized path agrees with the scalar estimator."""

import numpy as np
import pytest

from keyer.estimator import effective_tolerance, estimate
from keyer.matte import (
    compute_matte,
    effective_tolerance_array,
    estimate_array,
    finalize_array,
)
from keyer.params import KeyMethod, KeyParameters
from keyer.postprocess import key_alpha

pytestmark = pytest.mark.smoke

BIASED = dict(
    key_color=(0.1, 0.85, 0.2),
    variance=0.5,
    range_red=-1.0,
    range_green=1.5,
    range_blue=0.5,
    range_yellow=1.0,
    range_magenta=-2.0,
    range_cyan=2.5,
)


@pytest.mark.parametrize("method", list(KeyMethod))
def test_array_matches_scalar(method, random_rgb):
    params = KeyParameters(method=method, **BIASED)
    raw = estimate_array(random_rgb, params)
    assert raw.shape == random_rgb.shape[:-1]

    flat = random_rgb.reshape(-1, 3)
    expected = np.array([estimate(p, None, params) for p in flat])
    np.testing.assert_allclose(raw.reshape(-1), expected, atol=1e-12)


@pytest.mark.parametrize("method", list(KeyMethod))
def test_compute_matte_matches_key_alpha(method, random_rgb):
    params = KeyParameters(method=method, gain=1.7, invert=True, **BIASED)
    matte = compute_matte(random_rgb, params)
    expected = np.array([key_alpha(p, params) for p in random_rgb.reshape(-1, 3)])
    np.testing.assert_allclose(matte.reshape(-1), expected, atol=1e-12)


def test_effective_tolerance_array_matches_scalar(random_rgb):
    params = KeyParameters(**BIASED)
    tol = effective_tolerance_array(random_rgb, params)
    expected = [effective_tolerance(p, params) for p in random_rgb.reshape(-1, 3)]
    np.testing.assert_allclose(tol.reshape(-1), expected, atol=1e-12)
    assert tol.min() >= 0.001


def test_single_sample_array():
    params = KeyParameters()
    raw = estimate_array([0.0, 1.0, 0.0], params)
    assert raw.shape == ()
    assert float(raw) == 1.0


def test_empty_array():
    raw = estimate_array(np.zeros((0, 3)), KeyParameters())
    assert raw.shape == (0,)


@pytest.mark.parametrize("shape", [(4, 4), (4, 4, 4), ()])
def test_rejects_non_rgb_arrays(shape):
    with pytest.raises(ValueError):
        estimate_array(np.zeros(shape), KeyParameters())


def test_finalize_array_order():
    raw = np.array([0.0, 0.25, 0.5, 1.0])
    out = finalize_array(raw, KeyParameters(gain=2.0, invert=True))
    np.testing.assert_allclose(out, [1.0, 0.5, 0.0, 0.0])


def test_zero_variance_array_is_finite(random_rgb):
    for method in KeyMethod:
        matte = compute_matte(random_rgb, KeyParameters(variance=0.0, method=method))
        assert np.all(np.isfinite(matte))


def test_input_not_modified(random_rgb):
    before = random_rgb.copy()
    compute_matte(random_rgb, KeyParameters(**BIASED))
    np.testing.assert_array_equal(random_rgb, before)
