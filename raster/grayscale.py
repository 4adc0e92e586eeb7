import numpy as np

from raster.buffer import ChannelLayout, PixelBuffer, allocate, to_uchar, validate
from raster.errors import Unsupported

# ITU-R BT.601 luma weights
LUMA_R, LUMA_G, LUMA_B = np.float32(0.299), np.float32(0.587), np.float32(0.114)


def reduce_to_luma(src, width: int, height: int, channels_in: int) -> np.ndarray:
    """
    Collapse an interleaved 1/3/4 channel image to one luma byte per pixel.
    gray = 0.299 R + 0.587 G + 0.114 B; alpha is ignored.
    Returns a flat uint8 array of width*height values.
    """
    flat = np.asarray(src, dtype=np.uint8).reshape(-1)
    n = width * height
    out = allocate(n)
    if channels_in == 1:
        out[:] = flat[:n]
        return out
    if channels_in not in (3, 4):
        raise Unsupported(f"cannot reduce {channels_in} channels to luma")

    px = flat.reshape(n, channels_in).astype(np.float32)
    r, g, b = px[:, 0], px[:, 1], px[:, 2]
    out[:] = to_uchar(LUMA_R * r + LUMA_G * g + LUMA_B * b)
    return out


def grayscale(buffer: PixelBuffer) -> PixelBuffer:
    """Replace the buffer with its single-channel luma."""
    validate(buffer)
    luma = reduce_to_luma(buffer.data, buffer.width, buffer.height, int(buffer.channels))
    buffer.replace(luma, ChannelLayout.MONO)
    return buffer
