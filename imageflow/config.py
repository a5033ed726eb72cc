"""Runtime configuration for filter execution.

Values come from ``ProcessingConfig`` defaults, optionally overridden by
environment variables through :meth:`ProcessingConfig.from_env`:

- ``IMAGEFLOW_NUM_WORKERS``: host worker threads (default: CPU count)
- ``IMAGEFLOW_ROWS_PER_TASK``: minimum rows per host work item
- ``IMAGEFLOW_ACCELERATOR``: ``0``/``false`` disables the GPU path
- ``IMAGEFLOW_POWER_PREFERENCE``: ``high-performance`` or ``low-power``
- ``IMAGEFLOW_LOG_LEVEL``: log level used by the command line tool
"""
from __future__ import annotations

import os
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

_TRUE_VALUES = ('1', 'true', 'yes', 'on')


class ProcessingConfig(BaseModel):
    """Settings shared by host and accelerator execution paths."""

    model_config = ConfigDict(frozen=True, extra='ignore')

    num_workers: int | None = Field(default=None, ge=1)
    rows_per_task: int = Field(default=64, ge=1)
    accelerator_enabled: bool = True
    power_preference: Literal['high-performance', 'low-power'] = 'high-performance'
    workgroup_size: int = Field(default=8, ge=1, le=16)
    log_level: str = 'INFO'

    @property
    def worker_count(self) -> int:
        """Number of host threads to fan out to."""
        return self.num_workers or os.cpu_count() or 4

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> 'ProcessingConfig':
        """Build a configuration from ``IMAGEFLOW_*`` environment variables."""
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        if env.get('IMAGEFLOW_NUM_WORKERS'):
            values['num_workers'] = int(env['IMAGEFLOW_NUM_WORKERS'])
        if env.get('IMAGEFLOW_ROWS_PER_TASK'):
            values['rows_per_task'] = int(env['IMAGEFLOW_ROWS_PER_TASK'])
        if env.get('IMAGEFLOW_ACCELERATOR'):
            values['accelerator_enabled'] = env['IMAGEFLOW_ACCELERATOR'].strip().lower() in _TRUE_VALUES
        if env.get('IMAGEFLOW_POWER_PREFERENCE'):
            values['power_preference'] = env['IMAGEFLOW_POWER_PREFERENCE'].strip()
        if env.get('IMAGEFLOW_LOG_LEVEL'):
            values['log_level'] = env['IMAGEFLOW_LOG_LEVEL'].strip().upper()
        return cls(**values)


_active_config: ProcessingConfig | None = None


def get_config() -> ProcessingConfig:
    """Return the active configuration, reading the environment on first use."""
    global _active_config
    if _active_config is None:
        _active_config = ProcessingConfig.from_env()
    return _active_config


def set_config(config: ProcessingConfig | None) -> None:
    """Replace the active configuration. ``None`` re-reads the environment on next use."""
    global _active_config
    _active_config = config


__all__ = ['ProcessingConfig', 'get_config', 'set_config']
