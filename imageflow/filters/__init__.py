# ImageFlow Filters Module
"""
Dataclass-based filter system for image processing.

Filters read a :class:`~imageflow.buffer.PixelBuffer` and write a new one.
They are created by identifier through the :class:`FilterRegistry`, chained
in a :class:`FilterPipeline` and serialized to JSON or a compact string.
"""

from .base import (
    ExecutionPath,
    Filter,
    AcceleratedFilter,
)

from .color import (
    Grayscale,
    GrayscaleGPU,
    Brightness,
    Invert,
    Sepia,
)

from .blur import (
    BoxBlur,
    BoxBlurGPU,
)

from .registry import (
    FilterEntry,
    FilterRegistry,
    register_builtin_filters,
    create_default_registry,
    default_registry,
)

from .pipeline import (
    FilterPipeline,
    PipelineMetrics,
    ProcessingMode,
)

from .document import (
    PipelineDocument,
    StageDocument,
)

from .benchmark import (
    BenchmarkResult,
    compare_host_vs_accelerator,
    create_test_image,
    run_all_benchmarks,
)

__all__ = [
    # Base
    'ExecutionPath',
    'Filter',
    'AcceleratedFilter',
    # Color
    'Grayscale',
    'GrayscaleGPU',
    'Brightness',
    'Invert',
    'Sepia',
    # Blur
    'BoxBlur',
    'BoxBlurGPU',
    # Registry
    'FilterEntry',
    'FilterRegistry',
    'register_builtin_filters',
    'create_default_registry',
    'default_registry',
    # Pipeline
    'FilterPipeline',
    'PipelineMetrics',
    'ProcessingMode',
    'PipelineDocument',
    'StageDocument',
    # Benchmark
    'BenchmarkResult',
    'compare_host_vs_accelerator',
    'create_test_image',
    'run_all_benchmarks',
]
