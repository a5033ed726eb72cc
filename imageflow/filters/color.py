# ImageFlow Filters - Color Adjustments
"""
Per-pixel color filters: Grayscale, Brightness, Invert, Sepia.

Host implementations process row bands in parallel (see
:mod:`imageflow.filters.parallel`). Grayscale additionally has a GPU variant.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar
import math

import numpy as np

from imageflow.buffer import PixelBuffer
from .base import Filter, AcceleratedFilter
from .parallel import for_each_row_band

if TYPE_CHECKING:
    from imageflow.accelerator import AcceleratorDevice

# Luminance weights, evaluated in float32 on host and GPU alike
LUMA_R = np.float32(0.299)
LUMA_G = np.float32(0.587)
LUMA_B = np.float32(0.114)

SEPIA_MATRIX = np.array([
    [0.393, 0.769, 0.189],
    [0.349, 0.686, 0.168],
    [0.272, 0.534, 0.131],
])


@dataclass
class Grayscale(Filter):
    """Convert to single channel luminance.

    gray = 0.299 * R + 0.587 * G + 0.114 * B, truncated. Single channel input
    is copied, two channel input (gray + alpha) keeps its gray channel.
    """

    filter_id: ClassVar[str] = 'grayscale'

    @property
    def name(self) -> str:
        return 'Grayscale'

    def compute(self, image: PixelBuffer) -> np.ndarray:
        src = image.pixels
        if image.channels < 3:
            return src[:, :, :1].copy()

        result = np.empty((image.height, image.width, 1), dtype=np.uint8)

        def work(start: int, stop: int) -> None:
            rows = src[start:stop, :, :3].astype(np.float32)
            gray = LUMA_R * rows[:, :, 0] + LUMA_G * rows[:, :, 1] + LUMA_B * rows[:, :, 2]
            result[start:stop, :, 0] = np.minimum(gray, 255).astype(np.uint8)

        for_each_row_band(image.height, work)
        return result


@dataclass
class GrayscaleGPU(AcceleratedFilter):
    """Grayscale on the GPU, one kernel invocation per output pixel."""

    filter_id: ClassVar[str] = 'grayscale'

    @property
    def name(self) -> str:
        return 'Grayscale (GPU)'

    def host_equivalent(self) -> Grayscale:
        return Grayscale()

    def run_accelerated(self, image: PixelBuffer, device: 'AcceleratorDevice') -> np.ndarray:
        from imageflow.accelerator import run_pixel_kernel
        return run_pixel_kernel(device, 'grayscale', image, out_channels=1)


@dataclass
class Brightness(Filter):
    """Scale every channel value linearly.

    factor: 0.0 = black, 1.0 = original, 2.0 = twice as bright (clamped to 255)
    """

    filter_id: ClassVar[str] = 'brightness'
    _primary_param: ClassVar[str | None] = 'factor'

    factor: float = 1.0

    def __post_init__(self):
        if not math.isfinite(self.factor):
            raise ValueError(f"Brightness factor must be finite, got {self.factor}")

    @property
    def name(self) -> str:
        return f'Brightness (factor={float(self.factor)!r})'

    def compute(self, image: PixelBuffer) -> np.ndarray:
        src = image.pixels
        factor = np.float32(self.factor)
        result = np.empty_like(src)

        def work(start: int, stop: int) -> None:
            scaled = src[start:stop].astype(np.float32) * factor
            result[start:stop] = np.clip(scaled, 0, 255).astype(np.uint8)

        for_each_row_band(image.height, work)
        return result


@dataclass
class Invert(Filter):
    """Invert colors (negative), 255 - value on every channel including alpha."""

    filter_id: ClassVar[str] = 'invert'

    @property
    def name(self) -> str:
        return 'Invert'

    def compute(self, image: PixelBuffer) -> np.ndarray:
        src = image.pixels
        result = np.empty_like(src)

        def work(start: int, stop: int) -> None:
            np.subtract(255, src[start:stop], out=result[start:stop])

        for_each_row_band(image.height, work)
        return result


@dataclass
class Sepia(Filter):
    """Vintage sepia tone.

    Applies the classic sepia matrix to R, G and B, floors and clamps to 255.
    Images with fewer than three channels pass through unchanged, an alpha
    channel is preserved.
    """

    filter_id: ClassVar[str] = 'sepia'

    @property
    def name(self) -> str:
        return 'Sepia Tone'

    def compute(self, image: PixelBuffer) -> np.ndarray:
        src = image.pixels
        result = src.copy()
        if image.channels < 3:
            return result

        def work(start: int, stop: int) -> None:
            rgb = src[start:stop, :, :3].astype(np.float64)
            r, g, b = rgb[:, :, 0], rgb[:, :, 1], rgb[:, :, 2]
            for channel, (wr, wg, wb) in enumerate(SEPIA_MATRIX):
                toned = wr * r + wg * g + wb * b
                result[start:stop, :, channel] = np.minimum(toned, 255).astype(np.uint8)

        for_each_row_band(image.height, work)
        return result


__all__ = ['Grayscale', 'GrayscaleGPU', 'Brightness', 'Invert', 'Sepia']
