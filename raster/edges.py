# raster/edges.py
from typing import Optional

import numpy as np

from raster.buffer import ChannelLayout, PixelBuffer, allocate, to_uchar, validate
from raster.errors import InvalidArgument
from raster.grayscale import reduce_to_luma


def _derive_row(img: np.ndarray, r: int, dx_row: np.ndarray, dy_row: np.ndarray,
                left: np.ndarray, right: np.ndarray) -> None:
    """dI/dx and dI/dy of row r with the [-1, 0, 1] kernel, edge-clamped."""
    h = img.shape[0]
    row = img[r].astype(np.float32)
    dx_row[:] = row[right] - row[left]
    dy_row[:] = img[min(r + 1, h - 1)].astype(np.float32) - img[max(r - 1, 0)].astype(np.float32)


def sobel_magnitude(gray, width: int, height: int) -> np.ndarray:
    """
    Separable Sobel gradient magnitude of a single-channel image.

    Derivatives are computed one row at a time into two 3-row circular
    buffers (dx, dy). When three rows are buffered, dx is smoothed
    vertically and dy horizontally with [1, 2, 1], and sqrt(Gx^2 + Gy^2)
    is emitted for the middle row, so output trails the scan by one row.
    The scan starts one row above the image and ends one row below it
    (both clamped), so the first and last rows are emitted as well.

    Returns a flat uint8 array of width*height values.
    """
    img = np.asarray(gray, dtype=np.uint8).reshape(height, width)
    out = allocate((height, width), zero=True)
    dx = allocate((3, width), dtype=np.float32)
    dy = allocate((3, width), dtype=np.float32)

    cols = np.arange(width)
    left = np.clip(cols - 1, 0, width - 1)
    right = np.clip(cols + 1, 0, width - 1)

    # scan index s lives in slot (s + 1) % 3
    for s in range(-1, height + 1):
        r = min(max(s, 0), height - 1)
        _derive_row(img, r, dx[(s + 1) % 3], dy[(s + 1) % 3], left, right)
        if s < 1:
            continue

        top, mid, bottom = (s - 1) % 3, s % 3, (s + 1) % 3
        gx = dx[top] + 2.0 * dx[mid] + dx[bottom]
        d = dy[mid]
        gy = d[left] + 2.0 * d + d[right]
        out[s - 1] = to_uchar(np.sqrt(gx * gx + gy * gy))

    return out.reshape(-1)


def check_threshold(threshold) -> float:
    threshold = float(threshold)
    if not 0.0 <= threshold <= 255.0:
        raise InvalidArgument(f"threshold must be within 0..255, got {threshold}")
    return threshold


def _binarize(values: np.ndarray, threshold: float) -> np.ndarray:
    return np.where(values >= threshold, 255, 0).astype(np.uint8)


def sobel_edges(buffer: PixelBuffer, threshold: Optional[float] = None) -> PixelBuffer:
    """
    Replace the buffer with its 1-channel Sobel gradient magnitude map.
    With a threshold the map is binarised before it is installed.
    """
    validate(buffer)
    if threshold is not None:
        threshold = check_threshold(threshold)
    luma = reduce_to_luma(buffer.data, buffer.width, buffer.height, int(buffer.channels))
    gradient = sobel_magnitude(luma, buffer.width, buffer.height)
    if threshold is not None:
        gradient = _binarize(gradient, threshold)
    buffer.replace(gradient, ChannelLayout.MONO)
    return buffer


def threshold_edges(buffer: PixelBuffer, threshold: float) -> PixelBuffer:
    """Binary edge mask: 255 where value >= threshold, else 0."""
    validate(buffer)
    threshold = check_threshold(threshold)
    buffer.replace(_binarize(buffer.data, threshold), buffer.channels)
    return buffer
