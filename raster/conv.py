# raster/conv.py
import math

import numpy as np

from raster.buffer import PixelBuffer, allocate, to_uchar, validate
from raster.errors import InvalidArgument
from raster.kernel import Kernel, build_gaussian_kernel

# below this sigma the kernel is a unit impulse at 8-bit precision
MIN_SIGMA = 1e-6


def _clamped_offsets(n: int, radius: int) -> list:
    """For each kernel tap k in [-r, r], the edge-clamped source indices of 0..n-1."""
    base = np.arange(n)
    return [np.clip(base + k, 0, n - 1) for k in range(-radius, radius + 1)]


def horizontal_pass(src: np.ndarray, dst: np.ndarray, kernel: Kernel) -> None:
    """src, dst: HxWxC uint8, must not alias. Edge-clamped columns."""
    H, W, C = src.shape
    taps = _clamped_offsets(W, kernel.radius)
    acc = np.empty((W, C), dtype=np.float32)
    for y in range(H):
        row = src[y]
        acc.fill(0.0)
        for weight, cols in zip(kernel.weights, taps):
            acc += weight * row[cols]
        dst[y] = to_uchar(acc)


def vertical_pass(src: np.ndarray, dst: np.ndarray, kernel: Kernel) -> None:
    """src, dst: HxWxC uint8, must not alias. Edge-clamped rows."""
    H, W, C = src.shape
    taps = _clamped_offsets(H, kernel.radius)
    acc = np.empty((W, C), dtype=np.float32)
    for y in range(H):
        acc.fill(0.0)
        for weight, rows in zip(kernel.weights, taps):
            acc += weight * src[rows[y]]
        dst[y] = to_uchar(acc)


def gaussian_blur(buffer: PixelBuffer, sigma: float) -> PixelBuffer:
    """
    Separable gaussian blur, in place.
    Horizontal pass buffer -> scratch, then vertical pass scratch -> buffer.
    sigma <= 1e-6 leaves the buffer untouched.
    """
    validate(buffer)
    sigma = float(sigma)
    if math.isnan(sigma) or sigma < 0:
        raise InvalidArgument(f"sigma must be >= 0, got {sigma}")
    if sigma <= MIN_SIGMA:
        return buffer

    kernel = build_gaussian_kernel(sigma)
    img = buffer.as_array()
    scratch = allocate(img.shape)

    horizontal_pass(img, scratch, kernel)
    vertical_pass(scratch, img, kernel)
    return buffer
