import math

import numpy as np
import pytest

from raster.errors import InvalidArgument
from raster.kernel import build_gaussian_kernel


@pytest.mark.parametrize("sigma", [0.1, 0.5, 1.0, 1.7, 3.0, 6.25])
def test_kernel_is_normalized_and_symmetric(sigma):
    k = build_gaussian_kernel(sigma)
    assert k.radius == math.ceil(3 * sigma)
    assert len(k.weights) == 2 * k.radius + 1
    assert abs(float(np.sum(k.weights, dtype=np.float64)) - 1.0) < 1e-4
    for i in range(k.size):
        assert k.weights[i] == k.weights[2 * k.radius - i]


def test_kernel_peaks_at_center():
    k = build_gaussian_kernel(2.0)
    assert int(np.argmax(k.weights)) == k.radius
    assert np.all(np.diff(k.weights[:k.radius + 1]) > 0)


def test_kernel_is_immutable():
    k = build_gaussian_kernel(1.0)
    with pytest.raises(ValueError):
        k.weights[0] = 1.0


@pytest.mark.parametrize("sigma", [0.0, -1.0, float("nan"), float("inf")])
def test_kernel_rejects_bad_sigma(sigma):
    with pytest.raises(InvalidArgument):
        build_gaussian_kernel(sigma)
