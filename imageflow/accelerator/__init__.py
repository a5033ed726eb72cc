"""
GPU compute support based on WebGPU (``wgpu``).

Accelerated filters reach this package through :class:`AcceleratorDevice`
and :func:`run_pixel_kernel`. Any failure in here is turned into a host
fallback by the calling filter.
"""

from .device import AcceleratorDevice
from .compute import run_pixel_kernel
from .shaders import KERNELS, load_shader

__all__ = [
    'AcceleratorDevice',
    'run_pixel_kernel',
    'KERNELS',
    'load_shader',
]
