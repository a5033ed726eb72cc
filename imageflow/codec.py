"""
Image file loading and saving through Pillow.

Pillow modes map onto channel counts as follows:

    L -> 1, LA -> 2, RGB -> 3, RGBA -> 4

Palette images become RGB, or RGBA when they carry transparency. Single band
high bit depth and bilevel images become L, every other mode is converted to
RGB or RGBA depending on whether it has an alpha band.
"""

from __future__ import annotations

from pathlib import Path
import io
import logging

import numpy as np
import PIL.Image

from .buffer import PixelBuffer
from .errors import CodecError

logger = logging.getLogger(__name__)

MODE_FOR_CHANNELS = {1: "L", 2: "LA", 3: "RGB", 4: "RGBA"}
_SINGLE_BAND_MODES = {"1", "I", "I;16", "I;16B", "I;16L", "F"}
_FORMATS_WITHOUT_ALPHA = {"JPEG"}


def _normalize_mode(image: PIL.Image.Image) -> PIL.Image.Image:
    if image.mode in MODE_FOR_CHANNELS.values():
        return image
    if image.mode == "P":
        if "transparency" in image.info:
            return image.convert("RGBA")
        return image.convert("RGB")
    if image.mode in _SINGLE_BAND_MODES:
        return image.convert("L")
    if "A" in image.getbands():
        return image.convert("RGBA")
    return image.convert("RGB")


def from_pil(image: PIL.Image.Image) -> PixelBuffer:
    """
    Converts a PIL image to a pixel buffer

    :param image: The PIL image
    :return: A buffer with 1 to 4 channels
    """
    pixels = np.asarray(_normalize_mode(image), dtype=np.uint8)
    return PixelBuffer.from_array(pixels)


def to_pil(buffer: PixelBuffer) -> PIL.Image.Image:
    """
    Converts a pixel buffer to a PIL image

    :param buffer: The buffer
    :return: The PIL image in L, LA, RGB or RGBA mode
    """
    pixels = buffer.pixels
    if buffer.channels == 1:
        pixels = pixels[:, :, 0]
    return PIL.Image.fromarray(np.ascontiguousarray(pixels))


def load_image(source: str | Path | bytes) -> PixelBuffer:
    """
    Loads an image from disk or from encoded bytes

    :param source: The file name or the file's data
    :return: The decoded buffer
    :raises CodecError: If the file is missing or can not be decoded
    """
    name = "<bytes>" if isinstance(source, bytes) else str(source)
    try:
        if isinstance(source, bytes):
            image = PIL.Image.open(io.BytesIO(source))
        else:
            image = PIL.Image.open(source)
        with image:
            image.load()
            buffer = from_pil(image)
    except (OSError, ValueError) as e:
        raise CodecError(f"Could not load image {name}: {e}") from e
    logger.debug("Loaded %s (%dx%d, %d channel(s))", name, buffer.width, buffer.height, buffer.channels)
    return buffer


def save_image(
    buffer: PixelBuffer,
    target: str | Path,
    format: str | None = None,
    quality: int = 90,
) -> None:
    """
    Saves the buffer to disk

    :param buffer: The image to store
    :param target: The file name
    :param format: Pillow format name such as "PNG". Derived from the file
        extension if omitted.
    :param quality: The image quality between (0 = worst quality) and
        (95 = best quality), used by lossy formats
    :raises CodecError: If the file can not be encoded or written
    """
    image = to_pil(buffer)
    try:
        if format is None:
            extension = Path(target).suffix.lower()
            format = PIL.Image.registered_extensions().get(extension)
            if format is None:
                raise ValueError(f"Unknown file extension '{extension}'")
        format = format.upper()
        if format == "JPG":
            format = "JPEG"
        if format in _FORMATS_WITHOUT_ALPHA and image.mode in ("LA", "RGBA"):
            image = image.convert(image.mode[:-1])
        params = {"quality": quality} if format in ("JPEG", "WEBP") else {}
        image.save(target, format=format, **params)
    except (OSError, ValueError, KeyError) as e:
        raise CodecError(f"Could not save image {target}: {e}") from e
    logger.debug("Saved %s as %s", target, format)


__all__ = ["load_image", "save_image", "from_pil", "to_pil", "MODE_FOR_CHANNELS"]
