from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

import numpy as np
import wgpu  # type: ignore

STORAGE_IN = wgpu.BufferUsage.STORAGE | wgpu.BufferUsage.COPY_DST
STORAGE_OUT = wgpu.BufferUsage.STORAGE | wgpu.BufferUsage.COPY_SRC
UNIFORM = wgpu.BufferUsage.UNIFORM | wgpu.BufferUsage.COPY_DST


@contextmanager
def device_buffer(
    device: Any,
    usage: int,
    data: np.ndarray | None = None,
    size: int | None = None,
) -> Iterator[Any]:
    """
    Allocates a GPU buffer for the duration of a ``with`` block.

    The buffer is destroyed when the block exits, on normal return as well
    as when an exception propagates.

    :param device: The wgpu device
    :param usage: wgpu buffer usage flags
    :param data: Initial contents. Either data or size is required
    :param size: Size in bytes for an uninitialised buffer
    """
    if data is not None:
        buffer = device.create_buffer_with_data(data=np.ascontiguousarray(data), usage=usage)
    elif size is not None:
        buffer = device.create_buffer(size=size, usage=usage)
    else:
        raise ValueError("device_buffer requires data or size")
    try:
        yield buffer
    finally:
        buffer.destroy()
