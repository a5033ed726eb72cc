# ImageFlow Filters - Base Classes
"""
Base classes for the filter system.

All filters are dataclasses whose public fields are their parameters. A
filter reads an input :class:`PixelBuffer` and writes a fully populated
output buffer. Accelerator capable filters derive from
:class:`AcceleratedFilter`, which runs a GPU kernel and falls back to the
equivalent host filter whenever the accelerator cannot be used.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, fields, field, replace, MISSING
from enum import Enum
from typing import Any, ClassVar, TYPE_CHECKING
import json
import logging
import time

import numpy as np

from imageflow.buffer import PixelBuffer
from imageflow.errors import AcceleratorUnavailableError

if TYPE_CHECKING:
    from imageflow.accelerator import AcceleratorDevice

logger = logging.getLogger(__name__)


class ExecutionPath(Enum):
    """Which code path produced a filter's most recent output."""
    HOST = 'host'                    # multi-core CPU implementation
    ACCELERATOR = 'accelerator'      # GPU kernel
    HOST_FALLBACK = 'host_fallback'  # GPU attempted, host implementation ran


@dataclass
class Filter(ABC):
    """Base class for all filters.

    Subclasses declare their parameters as dataclass fields and implement
    :meth:`compute`, which returns the complete result as a numpy array.
    :meth:`apply` commits that array to the output buffer in one step, so
    an output is never left half written.

    Example:
        @dataclass
        class Threshold(Filter):
            filter_id: ClassVar[str] = 'threshold'
            value: int = 128

            @property
            def name(self) -> str:
                return f'Threshold (value={self.value})'

            def compute(self, image: PixelBuffer) -> np.ndarray:
                return np.where(image.pixels >= self.value, 255, 0).astype(np.uint8)
    """

    # Stable identifier used by the registry and in saved pipelines
    filter_id: ClassVar[str] = ''

    # Primary parameter name for compact string parsing (e.g. 'radius' for BoxBlur)
    _primary_param: ClassVar[str | None] = None

    _supports_accelerator: ClassVar[bool] = False

    _last_duration_ms: float = field(default=0.0, init=False, repr=False, compare=False)
    _last_path: ExecutionPath | None = field(default=None, init=False, repr=False, compare=False)

    @property
    def name(self) -> str:
        """Human readable identity including any parameter values."""
        return self.__class__.__name__

    @abstractmethod
    def compute(self, image: PixelBuffer) -> np.ndarray:
        """Compute the filter result on the host.

        :param image: The input buffer. Must not be modified.
        :returns: A (height, width, channels) uint8 array.
        """
        pass

    def apply(self, image: PixelBuffer, output: PixelBuffer) -> None:
        """Apply filter to ``image`` and write the result into ``output``.

        :param image: The input buffer, only read.
        :param output: Receives the result. Its shape is adjusted to the
            filter's output shape.
        """
        start = time.perf_counter()
        try:
            self._last_path = self._execute(image, output)
        finally:
            self._last_duration_ms = (time.perf_counter() - start) * 1000.0

    def apply_host(self, image: PixelBuffer, output: PixelBuffer) -> None:
        """Like :meth:`apply` but never engages an accelerator."""
        self.apply(image, output)

    def _execute(self, image: PixelBuffer, output: PixelBuffer) -> ExecutionPath:
        self._commit(output, self.compute(image))
        return ExecutionPath.HOST

    @staticmethod
    def _commit(output: PixelBuffer, result: np.ndarray) -> None:
        height, width, channels = result.shape
        output.ensure_shape(width, height, channels)
        output.assign(result)

    def __call__(self, image: PixelBuffer) -> PixelBuffer:
        """Apply filter and return the result as a new buffer."""
        output = image.empty_like()
        self.apply(image, output)
        return output

    def duplicate(self) -> 'Filter':
        """Return an independent instance with the same parameters and no timing history."""
        return replace(self)

    def supports_accelerator(self) -> bool:
        """True if this filter has a working accelerator code path."""
        return self._supports_accelerator

    @property
    def last_execution_duration_ms(self) -> float:
        """Wall clock duration of the most recent :meth:`apply`, 0.0 before first use."""
        return self._last_duration_ms

    @property
    def last_execution_path(self) -> ExecutionPath | None:
        """Code path of the most recent :meth:`apply`, None before first use."""
        return self._last_path

    @property
    def accelerated(self) -> bool:
        """True for accelerator variants (recorded in saved pipelines)."""
        return False

    @classmethod
    def parameter_names(cls) -> list[str]:
        """Names of the public dataclass fields, in declaration order."""
        return [f.name for f in fields(cls) if not f.name.startswith('_')]

    def params(self) -> dict[str, Any]:
        """Current parameter values as plain Python types."""
        values = {name: getattr(self, name) for name in self.parameter_names()}
        return {name: value.item() if isinstance(value, np.generic) else value
                for name, value in values.items()}

    def to_dict(self) -> dict[str, Any]:
        """Serialize filter to dictionary."""
        data = self.params()
        data['type'] = self.filter_id
        if self.accelerated:
            data['accelerator'] = True
        return data

    def to_json(self) -> str:
        """Serialize filter to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    def to_string(self) -> str:
        """Convert filter to compact string format.

        Uses the space-separated syntax understood by
        :meth:`imageflow.filters.FilterPipeline.parse`:
            'boxblur radius=3'
            'brightness factor=1.2'
            'grayscale gpu=true'
        """
        parts = [self.filter_id]

        for f in fields(self):
            if f.name.startswith('_'):
                continue
            value = getattr(self, f.name)
            # Skip default values
            if f.default is not MISSING and value == f.default:
                continue
            if isinstance(value, bool):
                value_str = 'true' if value else 'false'
            else:
                value_str = str(value)
            parts.append(f"{f.name}={value_str}")

        if self.accelerated:
            parts.append('gpu=true')
        return ' '.join(parts)


@dataclass
class AcceleratedFilter(Filter):
    """Base class for filters with a GPU implementation.

    :meth:`apply` follows a fixed protocol:

    1. Acquire the shared accelerator device. If it is unavailable, or
       anything fails while the kernel is submitted or executed, fall back.
    2. On success copy the kernel result into the output.
    3. On fallback run :meth:`host_equivalent` (same parameters) against the
       same input and output.
    4. Record the elapsed time of whichever path ran.

    Callers cannot tell the two paths apart except through
    :attr:`last_execution_path` and the log.
    """

    _supports_accelerator: ClassVar[bool] = True

    _fallback: Filter | None = field(default=None, init=False, repr=False, compare=False)

    @abstractmethod
    def host_equivalent(self) -> Filter:
        """A new host filter with this filter's parameters."""
        pass

    @abstractmethod
    def run_accelerated(self, image: PixelBuffer, device: 'AcceleratorDevice') -> np.ndarray:
        """Run the GPU kernel and return the (height, width, channels) result."""
        pass

    @property
    def accelerated(self) -> bool:
        return True

    def _host_filter(self) -> Filter:
        if self._fallback is None or self._fallback.params() != self.params():
            self._fallback = self.host_equivalent()
        return self._fallback

    def compute(self, image: PixelBuffer) -> np.ndarray:
        return self._host_filter().compute(image)

    def apply_host(self, image: PixelBuffer, output: PixelBuffer) -> None:
        start = time.perf_counter()
        try:
            self._commit(output, self.compute(image))
            self._last_path = ExecutionPath.HOST
        finally:
            self._last_duration_ms = (time.perf_counter() - start) * 1000.0

    def _execute(self, image: PixelBuffer, output: PixelBuffer) -> ExecutionPath:
        try:
            result = self._attempt_accelerator(image)
        except AcceleratorUnavailableError as e:
            logger.warning("%s: accelerator unavailable (%s), running on host", self.name, e)
        except Exception as e:
            logger.warning("%s: accelerator execution failed (%s), falling back to host",
                           self.name, e)
        else:
            self._commit(output, result)
            return ExecutionPath.ACCELERATOR

        self._commit(output, self.compute(image))
        return ExecutionPath.HOST_FALLBACK

    def _attempt_accelerator(self, image: PixelBuffer) -> np.ndarray:
        from imageflow.accelerator import AcceleratorDevice

        device = AcceleratorDevice.get()
        if not device.is_available:
            raise AcceleratorUnavailableError(device.unavailable_reason)
        return self.run_accelerated(image, device)


def _parse_value(s: str) -> int | float | bool | str:
    """Parse string value to appropriate type.

    Handles:
    - Booleans: true, false
    - Integers: 42, -5
    - Floats: 3.14, -0.5
    - Quoted strings: 'hello', "world" -> hello, world
    - Plain strings: anything else
    """
    s = s.strip()

    if (s.startswith("'") and s.endswith("'")) or (s.startswith('"') and s.endswith('"')):
        return s[1:-1]

    if s.lower() == 'true':
        return True
    if s.lower() == 'false':
        return False
    try:
        return int(s)
    except ValueError:
        pass
    try:
        return float(s)
    except ValueError:
        pass
    return s


def _split_filter_args(text: str) -> list[str]:
    """Split filter text into name and arguments, handling quoted strings.

    Examples:
        'boxblur 5' -> ['boxblur', '5']
        'brightness factor=1.2' -> ['brightness', 'factor=1.2']
    """
    parts = []
    current = []
    in_quotes = None  # None, '"', or "'"

    for char in text:
        if in_quotes:
            current.append(char)
            if char == in_quotes:
                in_quotes = None
        elif char in '"\'':
            in_quotes = char
            current.append(char)
        elif char.isspace():
            if current:
                parts.append(''.join(current))
                current = []
        else:
            current.append(char)

    if current:
        parts.append(''.join(current))

    return parts


__all__ = [
    'ExecutionPath',
    'Filter',
    'AcceleratedFilter',
]
