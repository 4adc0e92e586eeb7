import io
import os
from typing import Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

from raster.buffer import ChannelLayout, PixelBuffer, validate
from raster.errors import FileNotFound, FileRead, FileWrite, Unsupported

EXT_FORMATS = {"png": "PNG", "jpg": "JPEG", "jpeg": "JPEG"}


def allowed(filename: str, allowed_exts: set) -> bool:
    return "." in filename and filename.rsplit(".", 1)[1].lower() in allowed_exts

def image_format(filename: str) -> Optional[str]:
    """'PNG' / 'JPEG' from the file extension, None if unknown."""
    if "." not in filename:
        return None
    return EXT_FORMATS.get(filename.rsplit(".", 1)[1].lower())

def pil_to_bytes(pil_img: Image.Image, fmt="PNG") -> io.BytesIO:
    buf = io.BytesIO()
    pil_img.save(buf, format=fmt)
    buf.seek(0)
    return buf

def _normalize_mode(pil_img: Image.Image) -> Image.Image:
    # only 1, 3 and 4 channel 8-bit images reach the filters
    if pil_img.mode in ("L", "RGB", "RGBA"):
        return pil_img
    if pil_img.mode == "P":
        return pil_img.convert("RGBA" if "transparency" in pil_img.info else "RGB")
    if pil_img.mode == "1":
        return pil_img.convert("L")
    raise Unsupported(f"unsupported image mode: {pil_img.mode}")

def from_pil(pil_img: Image.Image) -> PixelBuffer:
    pil_img = _normalize_mode(pil_img)
    return PixelBuffer.from_array(np.asarray(pil_img, dtype=np.uint8))

def to_pil(buffer: PixelBuffer) -> Image.Image:
    validate(buffer)
    arr = buffer.as_array()
    if buffer.channels == ChannelLayout.MONO:
        arr = arr[..., 0]
    return Image.fromarray(np.ascontiguousarray(arr))

def load_image(path: str) -> PixelBuffer:
    if not os.path.isfile(path):
        raise FileNotFound(f"no such file: {path}")
    try:
        with Image.open(path) as pil_img:
            pil_img.load()
            return from_pil(pil_img)
    except (UnidentifiedImageError, OSError) as exc:
        raise FileRead(f"cannot decode {path}: {exc}") from exc

def save_image(buffer: PixelBuffer, path: str, fmt: Optional[str] = None) -> str:
    """
    Encode ``buffer`` to ``path``. fmt defaults to the extension's format.
    JPEG has no alpha, so RGBA is flattened to RGB first.
    A failed write removes the partial file.
    """
    fmt = fmt or image_format(path)
    if fmt not in ("PNG", "JPEG"):
        raise Unsupported(f"unsupported output format for {path}")
    pil_img = to_pil(buffer)
    if fmt == "JPEG" and pil_img.mode == "RGBA":
        pil_img = pil_img.convert("RGB")
    try:
        pil_img.save(path, format=fmt)
    except OSError as exc:
        if os.path.exists(path):
            os.remove(path)
        raise FileWrite(f"cannot write {path}: {exc}") from exc
    return path
