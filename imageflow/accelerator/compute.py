"""Dispatches per-pixel kernels and reads their results back."""

from __future__ import annotations

import logging
import math
from contextlib import ExitStack
from typing import TYPE_CHECKING

import numpy as np

from imageflow.config import get_config
from .resources import STORAGE_IN, STORAGE_OUT, UNIFORM, device_buffer

if TYPE_CHECKING:
    from imageflow.buffer import PixelBuffer
    from .device import AcceleratorDevice

logger = logging.getLogger(__name__)


def run_pixel_kernel(
    accelerator: 'AcceleratorDevice',
    kernel: str,
    source: 'PixelBuffer',
    out_channels: int,
    radius: int = 0,
) -> np.ndarray:
    """
    Runs a kernel with one invocation per output pixel.

    Uploads the source bytes, submits a single dispatch, blocks until the
    result has been read back and releases all device memory.

    :param accelerator: An available accelerator device
    :param kernel: Kernel name, see :data:`imageflow.accelerator.shaders.KERNELS`
    :param source: Input pixels
    :param out_channels: Channel count of the result
    :param radius: Neighbourhood radius passed to the kernel
    :return: (height, width, out_channels) uint8 array
    """
    workgroup = get_config().workgroup_size
    device = accelerator.device
    pipeline = accelerator.compute_pipeline(kernel, workgroup)
    width, height, channels = source.shape
    params = np.array([width, height, channels, radius], dtype=np.uint32)
    out_bytes = width * height * out_channels * 4

    with ExitStack() as stack:
        src = stack.enter_context(
            device_buffer(device, STORAGE_IN, data=source.data.astype(np.uint32)))
        dst = stack.enter_context(device_buffer(device, STORAGE_OUT, size=out_bytes))
        uniforms = stack.enter_context(device_buffer(device, UNIFORM, data=params))

        bind_group = device.create_bind_group(
            layout=pipeline.get_bind_group_layout(0),
            entries=[
                {'binding': 0, 'resource': {'buffer': src, 'offset': 0, 'size': src.size}},
                {'binding': 1, 'resource': {'buffer': dst, 'offset': 0, 'size': dst.size}},
                {'binding': 2, 'resource': {'buffer': uniforms, 'offset': 0, 'size': uniforms.size}},
            ],
        )
        encoder = device.create_command_encoder()
        compute_pass = encoder.begin_compute_pass()
        compute_pass.set_pipeline(pipeline)
        compute_pass.set_bind_group(0, bind_group)
        compute_pass.dispatch_workgroups(
            math.ceil(width / workgroup), math.ceil(height / workgroup), 1)
        compute_pass.end()
        device.queue.submit([encoder.finish()])

        raw = device.queue.read_buffer(dst)
        result = np.frombuffer(raw, dtype=np.uint32).astype(np.uint8)

    logger.debug("Kernel %s ran on %dx%dx%d", kernel, width, height, channels)
    return result.reshape(height, width, out_channels)
