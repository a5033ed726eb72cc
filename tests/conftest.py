"""
Pytest fixtures for ImageFlow tests
"""

import numpy as np
import pytest

from imageflow import PixelBuffer, set_config
from imageflow.filters import create_default_registry


@pytest.fixture(autouse=True)
def reset_config():
    """Every test starts from the environment's configuration."""
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def registry():
    """A fresh registry holding the standard filters."""
    return create_default_registry()


@pytest.fixture
def constant_image() -> PixelBuffer:
    """4x4 RGB image with every value set to 100."""
    return PixelBuffer.from_array(np.full((4, 4, 3), 100, dtype=np.uint8))


@pytest.fixture
def gradient_image() -> PixelBuffer:
    """Create a 40x30 RGB gradient (red by column, green by row, blue 128)."""
    pixels = np.zeros((30, 40, 3), dtype=np.uint8)
    for x in range(40):
        pixels[:, x, 0] = x * 255 // 39
    for y in range(30):
        pixels[y, :, 1] = y * 255 // 29
    pixels[:, :, 2] = 128
    return PixelBuffer.from_array(pixels)


@pytest.fixture
def noise_image() -> PixelBuffer:
    """Deterministic random 37x23 RGBA image."""
    rng = np.random.default_rng(42)
    return PixelBuffer.from_array(rng.integers(0, 256, (23, 37, 4), dtype=np.uint8))
