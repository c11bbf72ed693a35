"""Decode raster images into raw pixel buffers."""

from __future__ import annotations

from io import BytesIO
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError
from PIL.Image import DecompressionBombError

from ..errors import DecodeError
from ..io.models import PixelBuffer


def decode(path: str | Path) -> PixelBuffer:
    """Read *path* and return its pixels as RGB, or RGBA when it has alpha."""
    buffer, _ = decode_with_format(path)
    return buffer


def decode_with_format(path: str | Path) -> tuple[PixelBuffer, str | None]:
    """Like :func:`decode`, also returning the lower-case file format."""
    source = Path(path)
    if not source.is_file():
        raise DecodeError(source, "file does not exist")
    try:
        with Image.open(source) as img:
            img.load()
            return from_image(img), (img.format or "").lower() or None
    except (UnidentifiedImageError, DecompressionBombError, OSError) as exc:
        raise DecodeError(source, str(exc) or type(exc).__name__) from exc


def from_bytes(payload: bytes, label: str = "<bytes>") -> PixelBuffer:
    """Decode an encoded image held in memory."""
    if not payload:
        raise DecodeError(label, "empty image payload")
    try:
        with Image.open(BytesIO(payload)) as img:
            img.load()
            return from_image(img)
    except (UnidentifiedImageError, DecompressionBombError, OSError) as exc:
        raise DecodeError(label, str(exc) or type(exc).__name__) from exc


def from_image(img: Image.Image) -> PixelBuffer:
    """Return a buffer for a Pillow image, converting palette and gray modes."""
    mode = "RGBA" if _has_alpha(img) else "RGB"
    converted = img if img.mode == mode else img.convert(mode)
    width, height = converted.size
    return PixelBuffer(
        width=width,
        height=height,
        channels=len(mode),
        data=converted.tobytes(),
    )


def from_array(array: np.ndarray) -> PixelBuffer:
    """Wrap an ``(H, W, 3|4)`` uint8 array (or ``(H, W)`` gray) as a buffer.

    Other integer dtypes are accepted when every value lies in 0..255; float
    arrays and out-of-range values raise ``ValueError``.
    """
    pixels = np.asarray(array)
    if pixels.dtype != np.uint8:
        if not np.issubdtype(pixels.dtype, np.integer):
            raise ValueError(f"Expected integer pixel values, got dtype {pixels.dtype}")
        if pixels.size and (pixels.min() < 0 or pixels.max() > 255):
            raise ValueError("Pixel values must lie in 0..255")
    if pixels.ndim == 2:
        pixels = np.repeat(pixels[:, :, np.newaxis], 3, axis=2)
    if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
        raise ValueError(f"Expected an HxWx3 or HxWx4 array, got shape {pixels.shape}")
    height, width, channels = pixels.shape
    data = np.ascontiguousarray(pixels, dtype=np.uint8).tobytes()
    return PixelBuffer(width=width, height=height, channels=channels, data=data)


def to_image(buffer: PixelBuffer) -> Image.Image:
    mode = "RGBA" if buffer.channels == 4 else "RGB"
    return Image.frombytes(mode, (buffer.width, buffer.height), buffer.data)


def _has_alpha(img: Image.Image) -> bool:
    if "A" in img.getbands():
        return True
    return img.mode == "P" and "transparency" in img.info
