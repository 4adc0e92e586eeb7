# raster/kernel.py
import math
from dataclasses import dataclass

import numpy as np

from raster.buffer import allocate
from raster.errors import InvalidArgument


@dataclass(frozen=True, eq=False)
class Kernel:
    radius: int
    weights: np.ndarray  # 2*radius+1 float32 values, symmetric, sums to 1

    @property
    def size(self) -> int:
        return 2 * self.radius + 1


def build_gaussian_kernel(sigma: float) -> Kernel:
    """
    1D normalized gaussian, G(i) = exp(-i^2 / (2 sigma^2)) for i in [-r, r].
    Kernel half-width r = ceil(3*sigma).
    """
    sigma = float(sigma)
    if not sigma > 0 or math.isinf(sigma):
        raise InvalidArgument(f"sigma must be a positive finite number, got {sigma}")
    radius = int(math.ceil(3.0 * sigma))
    weights = allocate(2 * radius + 1, dtype=np.float32)
    x = np.arange(-radius, radius + 1, dtype=np.float32)
    weights[:] = np.exp(-(x * x) / np.float32(2.0 * sigma * sigma))
    weights /= weights.sum()
    weights.setflags(write=False)
    return Kernel(radius, weights)
