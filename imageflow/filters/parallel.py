"""
Row-band fan-out for host filters.

The image is split into horizontal bands which are processed on a thread
pool. numpy releases the GIL inside its kernels, so bands run concurrently.
Every band writes a disjoint slice of the result, no locking is needed.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, Future
from typing import Callable
import math

from imageflow.config import ProcessingConfig, get_config


def split_rows(height: int, workers: int, min_rows: int) -> list[tuple[int, int]]:
    """Split ``height`` rows into at most ``workers`` bands of at least ``min_rows`` rows.

    :returns: List of (start, stop) row ranges covering [0, height).
    """
    band = max(min_rows, math.ceil(height / max(workers, 1)))
    return [(start, min(start + band, height)) for start in range(0, height, band)]


def for_each_row_band(
    height: int,
    work: Callable[[int, int], None],
    config: ProcessingConfig | None = None,
) -> None:
    """Run ``work(start, stop)`` for every row band, in parallel where worthwhile.

    Exceptions raised by a band propagate to the caller once all submitted
    bands have finished.
    """
    config = config or get_config()
    bands = split_rows(height, config.worker_count, config.rows_per_task)
    if len(bands) == 1:
        work(*bands[0])
        return

    with ThreadPoolExecutor(max_workers=min(config.worker_count, len(bands))) as executor:
        futures: list[Future] = [executor.submit(work, start, stop) for start, stop in bands]
        for future in futures:
            future.result()


__all__ = ['split_rows', 'for_each_row_band']
