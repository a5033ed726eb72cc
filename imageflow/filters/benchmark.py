# ImageFlow Filters - Benchmark Utilities
"""
Benchmark utilities comparing host filters with their accelerator variants.

Each comparison runs both filters on the same input, averages the measured
durations and reports the speedup together with the largest per-value
difference between the two outputs.

Results are serializable dataclasses with ASCII table output.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import TYPE_CHECKING, Any
import json
import logging

import numpy as np

from imageflow.buffer import PixelBuffer
from .base import ExecutionPath

if TYPE_CHECKING:
    from .base import Filter

logger = logging.getLogger(__name__)


def create_test_image(width: int = 2000, height: int = 1500) -> PixelBuffer:
    """RGB gradient: red rises left to right, green top to bottom, blue is 128."""
    xs = np.arange(width, dtype=np.int64) * 255 // width
    ys = np.arange(height, dtype=np.int64) * 255 // height
    pixels = np.empty((height, width, 3), dtype=np.uint8)
    pixels[:, :, 0] = xs[np.newaxis, :]
    pixels[:, :, 1] = ys[:, np.newaxis]
    pixels[:, :, 2] = 128
    return PixelBuffer.from_array(pixels)


@dataclass
class BenchmarkResult:
    """Host vs accelerator timing for one filter - serializable."""
    filter_name: str
    host_ms: float
    accelerator_ms: float
    accelerator_path: ExecutionPath | None
    max_abs_diff: int
    image_size: tuple[int, int] = (0, 0)
    repeat: int = 1

    @property
    def speedup(self) -> float:
        """host_ms / accelerator_ms, 0.0 if the accelerator time is zero."""
        if self.accelerator_ms <= 0:
            return 0.0
        return self.host_ms / self.accelerator_ms

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        d = asdict(self)
        d['accelerator_path'] = self.accelerator_path.value if self.accelerator_path else None
        d['image_size'] = list(self.image_size)
        d['speedup'] = self.speedup
        return d

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def ascii_table(self) -> str:
        """Generate ASCII table representation."""
        path = self.accelerator_path.value if self.accelerator_path else '-'
        lines = [
            "=" * 60,
            f"BENCHMARK: {self.filter_name}",
            "=" * 60,
            f"Source: {self.image_size[0]}x{self.image_size[1]}, {self.repeat} run(s)",
            "-" * 60,
            f"{'Path':<30} {'Time':>12}",
            "-" * 60,
            f"{'host':<30} {self.host_ms:>10.2f}ms",
            f"{'accelerator (' + path + ')':<30} {self.accelerator_ms:>10.2f}ms",
            "-" * 60,
            f"Speedup: {self.speedup:.2f}x | Max difference: {self.max_abs_diff}",
            "=" * 60,
        ]
        return "\n".join(lines)


def _average_ms(filter: 'Filter', image: PixelBuffer, repeat: int) -> tuple[float, PixelBuffer]:
    output = image.empty_like()
    total = 0.0
    for _ in range(repeat):
        filter.apply(image, output)
        total += filter.last_execution_duration_ms
    return total / repeat, output


def compare_host_vs_accelerator(
    host: 'Filter',
    accelerator: 'Filter',
    image: PixelBuffer,
    repeat: int = 3,
    warmup: int = 1,
) -> BenchmarkResult:
    """Benchmark a host filter against its accelerator variant.

    :param host: The host filter
    :param accelerator: The accelerator variant with the same parameters
    :param image: Input image, shared by both runs
    :param repeat: Number of timed runs per filter
    :param warmup: Untimed runs of the accelerator filter, covering device
        start-up and shader compilation
    :returns: BenchmarkResult with averaged timings
    """
    if repeat < 1:
        raise ValueError(f"repeat must be at least 1, got {repeat}")

    scratch = image.empty_like()
    for _ in range(warmup):
        accelerator.apply(image, scratch)

    host_ms, host_out = _average_ms(host, image, repeat)
    accel_ms, accel_out = _average_ms(accelerator, image, repeat)

    if host_out.shape != accel_out.shape:
        raise ValueError(
            f"Output shapes differ: host {host_out.shape}, accelerator {accel_out.shape}")
    diff = np.abs(host_out.data.astype(np.int16) - accel_out.data.astype(np.int16))

    result = BenchmarkResult(
        filter_name=host.name,
        host_ms=host_ms,
        accelerator_ms=accel_ms,
        accelerator_path=accelerator.last_execution_path,
        max_abs_diff=int(diff.max()) if diff.size else 0,
        image_size=(image.width, image.height),
        repeat=repeat,
    )
    logger.info("%s: host %.2fms, accelerator %.2fms (%s)", result.filter_name,
                host_ms, accel_ms, result.accelerator_path.value if result.accelerator_path else '-')
    return result


def run_all_benchmarks(image: PixelBuffer, radius: int = 3, repeat: int = 3) -> list[BenchmarkResult]:
    """Compare grayscale and box blur against their accelerator variants."""
    from .blur import BoxBlur, BoxBlurGPU
    from .color import Grayscale, GrayscaleGPU

    return [
        compare_host_vs_accelerator(Grayscale(), GrayscaleGPU(), image, repeat),
        compare_host_vs_accelerator(BoxBlur(radius=radius), BoxBlurGPU(radius=radius), image, repeat),
    ]


def summary_table(results: list[BenchmarkResult]) -> str:
    """Side by side comparison of several results."""
    lines = [
        "=" * 70,
        "HOST vs ACCELERATOR",
        "=" * 70,
        f"{'Filter':<26} {'Host':>10} {'Accel':>10} {'Speedup':>9} {'Path':>12}",
        "-" * 70,
    ]
    for r in results:
        path = r.accelerator_path.value if r.accelerator_path else '-'
        lines.append(
            f"{r.filter_name:<26} {r.host_ms:>8.2f}ms {r.accelerator_ms:>8.2f}ms "
            f"{r.speedup:>8.2f}x {path:>12}"
        )
    lines.append("-" * 70)
    return "\n".join(lines)


__all__ = [
    'BenchmarkResult',
    'compare_host_vs_accelerator',
    'create_test_image',
    'run_all_benchmarks',
    'summary_table',
]
