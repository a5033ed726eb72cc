"""
Implements the class :class:`.PixelBuffer` which holds the 8 bit raster data
every filter reads from and writes to.

Pixels are stored in one flat ``uint8`` array, row-major and channel
interleaved. Pixel ``(x, y)`` occupies the bytes
``[(y * width + x) * channels, (y * width + x) * channels + channels)``.
"""

from __future__ import annotations

import numpy as np

MAX_CHANNELS = 4
"Largest supported channel count (gray, gray+alpha, RGB, RGBA)"


def _check_shape(width: int, height: int, channels: int) -> None:
    if width <= 0 or height <= 0 or channels <= 0:
        raise ValueError(
            f"PixelBuffer dimensions must be positive, got {width}x{height}x{channels}")
    if channels > MAX_CHANNELS:
        raise ValueError(f"PixelBuffer supports 1 to {MAX_CHANNELS} channels, got {channels}")


class PixelBuffer:
    """
    Owns a contiguous 8 bit per channel raster.

    :param width: Width in pixels
    :param height: Height in pixels
    :param channels: Channel count, 1 to 4
    """

    __slots__ = ('_width', '_height', '_channels', '_data')

    def __init__(self, width: int, height: int, channels: int = 3):
        _check_shape(width, height, channels)
        self._width = int(width)
        self._height = int(height)
        self._channels = int(channels)
        self._data = np.zeros(self._width * self._height * self._channels, dtype=np.uint8)

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> PixelBuffer:
        """
        Creates a buffer from a numpy array.

        :param pixels: A (height, width) or (height, width, channels) array.
            Values are converted to uint8.
        :return: A new buffer holding a copy of the pixels
        """
        pixels = np.asarray(pixels)
        if pixels.ndim == 2:
            pixels = pixels[:, :, np.newaxis]
        if pixels.ndim != 3:
            raise ValueError(f"Expected 2D or 3D array, got {pixels.ndim}D")
        height, width, channels = pixels.shape
        buffer = cls(width, height, channels)
        buffer._data[:] = pixels.astype(np.uint8, copy=False).reshape(-1)
        return buffer

    @classmethod
    def from_bytes(cls, width: int, height: int, channels: int, data: bytes) -> PixelBuffer:
        """
        Creates a buffer from raw interleaved bytes, e.g. from a decoder.

        :param width: Width in pixels
        :param height: Height in pixels
        :param channels: Channel count
        :param data: Exactly width * height * channels bytes
        """
        buffer = cls(width, height, channels)
        raw = np.frombuffer(data, dtype=np.uint8)
        if raw.size != buffer._data.size:
            raise ValueError(
                f"Expected {buffer._data.size} bytes for {width}x{height}x{channels}, got {raw.size}")
        buffer._data[:] = raw
        return buffer

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def channels(self) -> int:
        return self._channels

    @property
    def shape(self) -> tuple[int, int, int]:
        """(width, height, channels)"""
        return self._width, self._height, self._channels

    @property
    def size(self) -> int:
        """Length of the byte buffer."""
        return self._data.size

    @property
    def data(self) -> np.ndarray:
        """
        The flat byte array for bulk, parallel or accelerator access.

        No bounds checks happen through this view, callers have to respect
        the declared dimensions.
        """
        return self._data

    @property
    def pixels(self) -> np.ndarray:
        """A (height, width, channels) view sharing memory with :attr:`data`."""
        return self._data.reshape(self._height, self._width, self._channels)

    def _offset(self, x: int, y: int, channel: int) -> int:
        if not (0 <= x < self._width and 0 <= y < self._height and 0 <= channel < self._channels):
            raise IndexError(
                f"PixelBuffer index ({x}, {y}, {channel}) out of range for "
                f"{self._width}x{self._height}x{self._channels}")
        return (y * self._width + x) * self._channels + channel

    def at(self, x: int, y: int, channel: int) -> int:
        """Returns the value at (x, y, channel), raising IndexError when out of bounds."""
        return int(self._data[self._offset(x, y, channel)])

    def set(self, x: int, y: int, channel: int, value: int) -> None:
        """Writes a value at (x, y, channel), raising IndexError when out of bounds."""
        self._data[self._offset(x, y, channel)] = value

    def __getitem__(self, index: tuple[int, int, int]) -> int:
        return self.at(*index)

    def __setitem__(self, index: tuple[int, int, int], value: int) -> None:
        self.set(*index, value)

    def empty_like(self) -> PixelBuffer:
        """Returns a zero filled buffer with the same width, height and channels."""
        return PixelBuffer(self._width, self._height, self._channels)

    def copy(self) -> PixelBuffer:
        """Returns an independent duplicate of this buffer."""
        result = PixelBuffer.__new__(PixelBuffer)
        result._width, result._height, result._channels = self.shape
        result._data = self._data.copy()
        return result

    def ensure_shape(self, width: int, height: int, channels: int) -> None:
        """
        Gives the buffer the requested shape.

        The existing storage is kept when the shape already matches, otherwise
        a zero filled array is allocated.
        """
        _check_shape(width, height, channels)
        if (width, height, channels) == self.shape:
            return
        self._width, self._height, self._channels = int(width), int(height), int(channels)
        self._data = np.zeros(width * height * channels, dtype=np.uint8)

    def assign(self, pixels: np.ndarray) -> None:
        """
        Commits a fully computed result in one step.

        :param pixels: (height, width, channels) or flat array matching the
            buffer's current shape
        """
        pixels = np.asarray(pixels)
        if pixels.size != self._data.size:
            raise ValueError(
                f"Cannot assign {pixels.size} values to a buffer of {self._data.size} bytes")
        self._data[:] = pixels.reshape(-1)

    def to_bytes(self) -> bytes:
        return self._data.tobytes()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.shape == other.shape and np.array_equal(self._data, other._data)

    __hash__ = None

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self._width}, height={self._height}, channels={self._channels})"


__all__ = ['PixelBuffer', 'MAX_CHANNELS']
