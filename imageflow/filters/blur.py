# ImageFlow Filters - Blur
"""
Box blur with a host implementation and a GPU variant.

Edges are handled by averaging only the samples that fall inside the image,
there is no wrap-around and no padding.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

import numpy as np

from imageflow.buffer import PixelBuffer
from .base import Filter, AcceleratedFilter
from .parallel import for_each_row_band

if TYPE_CHECKING:
    from imageflow.accelerator import AcceleratorDevice


def _check_radius(radius: int) -> None:
    if isinstance(radius, bool) or not isinstance(radius, (int, np.integer)):
        raise ValueError(f"Box blur radius must be an integer, got {radius!r}")
    if radius < 0:
        raise ValueError(f"Box blur radius must not be negative, got {radius}")


def _integral_image(pixels: np.ndarray) -> np.ndarray:
    """Summed area table with a leading zero row and column."""
    height, width, channels = pixels.shape
    table = np.zeros((height + 1, width + 1, channels), dtype=np.int64)
    table[1:, 1:] = np.cumsum(np.cumsum(pixels, axis=0, dtype=np.int64), axis=1)
    return table


@dataclass
class BoxBlur(Filter):
    """Average of the (2 * radius + 1)^2 neighbourhood, per channel.

    radius: Neighbourhood radius in pixels. 0 leaves the image unchanged.

    Example:
        'boxblur 3'
    """

    filter_id: ClassVar[str] = 'boxblur'
    _primary_param: ClassVar[str | None] = 'radius'

    radius: int = 2

    def __post_init__(self):
        _check_radius(self.radius)

    @property
    def name(self) -> str:
        return f'Box Blur (radius={self.radius})'

    def compute(self, image: PixelBuffer) -> np.ndarray:
        src = image.pixels
        if self.radius == 0:
            return src.copy()

        height, width = image.height, image.width
        table = _integral_image(src)
        cols = np.arange(width)
        x0 = np.maximum(cols - self.radius, 0)
        x1 = np.minimum(cols + self.radius, width - 1) + 1
        result = np.empty_like(src)

        def work(start: int, stop: int) -> None:
            rows = np.arange(start, stop)
            y0 = np.maximum(rows - self.radius, 0)[:, np.newaxis]
            y1 = (np.minimum(rows + self.radius, height - 1) + 1)[:, np.newaxis]
            sums = table[y1, x1] - table[y0, x1] - table[y1, x0] + table[y0, x0]
            counts = (y1 - y0) * (x1 - x0)
            result[start:stop] = (sums // counts[:, :, np.newaxis]).astype(np.uint8)

        for_each_row_band(height, work)
        return result


@dataclass
class BoxBlurGPU(AcceleratedFilter):
    """Box blur on the GPU, one kernel invocation per output pixel.

    radius: Neighbourhood radius in pixels.
    """

    filter_id: ClassVar[str] = 'boxblur'
    _primary_param: ClassVar[str | None] = 'radius'

    radius: int = 2

    def __post_init__(self):
        _check_radius(self.radius)

    @property
    def name(self) -> str:
        return f'Box Blur GPU (radius={self.radius})'

    def host_equivalent(self) -> BoxBlur:
        return BoxBlur(radius=self.radius)

    def run_accelerated(self, image: PixelBuffer, device: 'AcceleratorDevice') -> np.ndarray:
        from imageflow.accelerator import run_pixel_kernel
        if self.radius == 0:
            return image.pixels.copy()
        return run_pixel_kernel(device, 'boxblur', image, out_channels=image.channels,
                                radius=self.radius)


__all__ = ['BoxBlur', 'BoxBlurGPU']
