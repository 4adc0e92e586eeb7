# raster/buffer.py
from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple

import numpy as np

from raster.errors import InvalidArgument, OutOfMemory, Unsupported


class ChannelLayout(IntEnum):
    MONO = 1
    RGB = 3
    RGBA = 4

    @classmethod
    def from_count(cls, channels: int) -> "ChannelLayout":
        try:
            return cls(int(channels))
        except ValueError:
            raise Unsupported(f"unsupported channel count: {channels}") from None


def to_uchar(values) -> np.ndarray:
    """Clamp to [0,255] and round half up (the C ``roundf`` rule, not numpy's half-to-even)."""
    clipped = np.clip(np.asarray(values, dtype=np.float32), 0.0, 255.0)
    return np.floor(clipped + 0.5).astype(np.uint8)


def allocate(shape, dtype=np.uint8, zero: bool = False) -> np.ndarray:
    try:
        if zero:
            return np.zeros(shape, dtype=dtype)
        return np.empty(shape, dtype=dtype)
    except (MemoryError, ValueError):
        raise OutOfMemory(f"cannot allocate {shape} x {np.dtype(dtype).name}") from None


@dataclass(eq=False)
class PixelBuffer:
    """
    Tightly packed, row-major, channel-interleaved 8-bit image.

    data: flat uint8 array, len == width*height*channels
    pixel (x, y) channel c lives at (y*width + x)*channels + c
    """
    width: int
    height: int
    channels: ChannelLayout
    data: np.ndarray

    def __post_init__(self):
        self.channels = ChannelLayout.from_count(self.channels)
        if self.data is not None:
            self.data = np.ascontiguousarray(self.data, dtype=np.uint8).reshape(-1)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "PixelBuffer":
        """HxW or HxWxC uint8 array -> PixelBuffer (data is copied)."""
        arr = np.asarray(arr)
        if arr.ndim == 2:
            arr = arr[..., None]
        if arr.ndim != 3:
            raise InvalidArgument(f"expected HxW or HxWxC array, got shape {arr.shape}")
        h, w, c = arr.shape
        return cls(w, h, c, np.array(arr, dtype=np.uint8, copy=True))

    @classmethod
    def filled(cls, width: int, height: int, channels: int, value) -> "PixelBuffer":
        data = allocate((height, width, int(channels)))
        data[...] = np.asarray(value, dtype=np.uint8)
        return cls(width, height, channels, data)

    @property
    def shape(self) -> Tuple[int, int, int]:
        return (self.height, self.width, int(self.channels))

    @property
    def size(self) -> int:
        return self.width * self.height * int(self.channels)

    def index(self, x: int, y: int, c: int = 0) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height and 0 <= c < self.channels):
            raise IndexError(f"pixel ({x}, {y}, {c}) outside {self.width}x{self.height}x{int(self.channels)}")
        return (y * self.width + x) * int(self.channels) + c

    def pixel(self, x: int, y: int) -> Tuple[int, ...]:
        i = self.index(x, y)
        return tuple(int(v) for v in self.data[i:i + int(self.channels)])

    def as_array(self) -> np.ndarray:
        """HxWxC view sharing memory with ``data``."""
        return self.data.reshape(self.shape)

    def plane(self, c: int) -> np.ndarray:
        """HxW view of one channel."""
        return self.as_array()[..., c]

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.width, self.height, self.channels, self.data.copy())

    def replace(self, data: np.ndarray, channels: int) -> None:
        """Install a fully built data array (and its channel count) in one step."""
        layout = ChannelLayout.from_count(channels)
        flat = np.ascontiguousarray(data, dtype=np.uint8).reshape(-1)
        if flat.size != self.width * self.height * int(layout):
            raise InvalidArgument(
                f"replacement holds {flat.size} bytes, expected {self.width * self.height * int(layout)}")
        self.data, self.channels = flat, layout


def validate(buffer: PixelBuffer) -> PixelBuffer:
    if buffer is None or getattr(buffer, "data", None) is None:
        raise InvalidArgument("buffer has no pixel data")
    if buffer.width <= 0 or buffer.height <= 0:
        raise InvalidArgument(f"empty buffer {buffer.width}x{buffer.height}")
    ChannelLayout.from_count(buffer.channels)
    if buffer.data.dtype != np.uint8 or buffer.data.size != buffer.size:
        raise InvalidArgument(
            f"data holds {buffer.data.size} {buffer.data.dtype} values, expected {buffer.size} uint8")
    return buffer
