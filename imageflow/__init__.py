"""
ImageFlow - A filter pipeline for raster images with optional GPU acceleration
"""

from .buffer import PixelBuffer
from .config import ProcessingConfig, get_config, set_config
from .errors import (
    ImageFlowError,
    FilterNotFoundError,
    PipelineFormatError,
    AcceleratorUnavailableError,
    CodecError,
)
from .filters import (
    Filter,
    FilterPipeline,
    FilterRegistry,
    ProcessingMode,
    ExecutionPath,
    default_registry,
)

__version__ = "0.1.0"

__all__ = [
    # Core buffer
    "PixelBuffer",
    # Configuration
    "ProcessingConfig",
    "get_config",
    "set_config",
    # Errors
    "ImageFlowError",
    "FilterNotFoundError",
    "PipelineFormatError",
    "AcceleratorUnavailableError",
    "CodecError",
    # Filters
    "Filter",
    "FilterPipeline",
    "FilterRegistry",
    "ProcessingMode",
    "ExecutionPath",
    "default_registry",
]
