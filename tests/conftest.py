import numpy as np
import pytest

from app import create_app
from raster.buffer import PixelBuffer


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def noisy_rgb(rng) -> PixelBuffer:
    """Random 17x13 RGB image."""
    return PixelBuffer.from_array(rng.integers(0, 256, size=(13, 17, 3), dtype=np.uint8))


@pytest.fixture
def noisy_rgba(rng) -> PixelBuffer:
    return PixelBuffer.from_array(rng.integers(0, 256, size=(9, 11, 4), dtype=np.uint8))


@pytest.fixture
def step_edge() -> PixelBuffer:
    """Single channel 12x8 image: left half 0, right half 255."""
    pixels = np.zeros((8, 12), dtype=np.uint8)
    pixels[:, 6:] = 255
    return PixelBuffer.from_array(pixels)


@pytest.fixture
def app(tmp_path):
    static = tmp_path / "static"
    app = create_app({
        "TESTING": True,
        "STATIC_DIR": str(static),
        "UPLOAD_DIR": str(static / "uploads"),
        "RESULT_DIR": str(static / "results"),
    })
    return app


@pytest.fixture
def client(app):
    return app.test_client()
