import numpy as np
import pytest

from keyer.params import KeyParameters


@pytest.fixture
def green_key() -> KeyParameters:
    """Default green-screen setup: key (0, 1, 0), variance 0.3, no biases."""
    return KeyParameters()


@pytest.fixture
def random_rgb() -> np.ndarray:
    """Deterministic (48, 64, 3) float RGB samples in [0, 1]."""
    rng = np.random.default_rng(42)
    return rng.random((48, 64, 3))


@pytest.fixture
def green_screen_frame() -> np.ndarray:
    """RGBA uint8 frame: pure green left half, random subject on the right."""
    rng = np.random.default_rng(7)
    frame = rng.integers(0, 256, (48, 64, 4), dtype=np.uint8)
    frame[:, :32, 0] = 0
    frame[:, :32, 1] = 255
    frame[:, :32, 2] = 0
    return frame
