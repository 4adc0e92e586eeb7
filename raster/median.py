# raster/median.py
import numbers
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from raster.buffer import PixelBuffer, validate
from raster.errors import InvalidArgument, OutOfMemory


class Histogram:
    """
    256-bin value histogram of a w x w window over one padded channel plane.
    sum(counts) == w*w whenever no slide is in progress.
    """

    def __init__(self, window: int):
        self.window = window
        self.area = window * window
        self.counts = np.zeros(256, dtype=np.int64)
        self.origin_x = 0
        self.origin_y = 0

    def seed(self, plane: np.ndarray, origin_y: int, origin_x: int = 0) -> None:
        w = self.window
        block = plane[origin_y:origin_y + w, origin_x:origin_x + w]
        self.counts[:] = np.bincount(block.ravel(), minlength=256)
        self.origin_y, self.origin_x = origin_y, origin_x

    def slide(self, plane: np.ndarray) -> None:
        """Move the window one column right: drop the leaving column, add the entering one."""
        y0, y1 = self.origin_y, self.origin_y + self.window
        np.subtract.at(self.counts, plane[y0:y1, self.origin_x], 1)
        self.origin_x += 1
        np.add.at(self.counts, plane[y0:y1, self.origin_x + self.window - 1], 1)

    def median(self) -> int:
        # first bin where the running count exceeds area // 2
        running = np.cumsum(self.counts)
        return int(np.searchsorted(running, self.area // 2, side="right"))


def build_padded_canvas(buffer: PixelBuffer, radius: int) -> np.ndarray:
    """(H+2r) x (W+2r) x C copy of the buffer with borders clamped outward."""
    try:
        return np.pad(buffer.as_array(), ((radius, radius), (radius, radius), (0, 0)), mode="edge")
    except MemoryError:
        raise OutOfMemory(f"cannot allocate padded canvas for radius {radius}") from None


def _median_channel(padded: np.ndarray, dst: np.ndarray, radius: int) -> None:
    """padded: (H+2r)x(W+2r) plane, dst: HxW plane written in place."""
    H, W = dst.shape
    hist = Histogram(2 * radius + 1)
    for y in range(H):
        hist.seed(padded, y)
        row = dst[y]
        for x in range(W):
            row[x] = hist.median()
            if x < W - 1:
                hist.slide(padded)


def median_filter(buffer: PixelBuffer, radius: int, workers: int = 1) -> PixelBuffer:
    """
    Channel-wise median over a (2r+1)^2 window, in place.

    Borders are clamped via a padded copy; each row is seeded with a fresh
    histogram and then slid column by column. Channels are independent,
    so with workers > 1 they run on a thread pool with identical results.
    """
    validate(buffer)
    if isinstance(radius, bool) or not isinstance(radius, numbers.Integral):
        raise InvalidArgument(f"radius must be an integer, got {radius!r}")
    radius = int(radius)
    if radius < 0:
        raise InvalidArgument(f"radius must be >= 0, got {radius}")
    if radius == 0:
        return buffer

    canvas = build_padded_canvas(buffer, radius)
    img = buffer.as_array()
    channels = range(int(buffer.channels))

    def run(c):
        _median_channel(np.ascontiguousarray(canvas[..., c]), img[..., c], radius)

    if workers > 1 and len(channels) > 1:
        with ThreadPoolExecutor(max_workers=min(int(workers), len(channels))) as pool:
            list(pool.map(run, channels))
    else:
        for c in channels:
            run(c)
    return buffer
