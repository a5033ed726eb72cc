from __future__ import annotations

import logging
from typing import Any

import wgpu  # type: ignore

from imageflow.config import get_config
from .shaders import load_shader

logger = logging.getLogger(__name__)


class AcceleratorDevice:
    """
    Process wide manager for the WebGPU adapter and device.

    Use :meth:`get` to obtain the shared instance. A device that failed to
    initialise stays unavailable, :attr:`unavailable_reason` tells why.
    """

    _instance: AcceleratorDevice | None = None

    def __init__(self, power_preference: str = 'high-performance', enabled: bool = True) -> None:
        self.adapter: Any = None
        self.device: Any = None
        self.limits: dict[str, Any] = {}
        self.unavailable_reason = ''
        self._pipelines: dict[tuple[str, int], Any] = {}
        if enabled:
            self._initialize(power_preference)
        else:
            self.unavailable_reason = 'accelerator disabled by configuration'
            logger.info("Accelerator disabled by configuration")

    @classmethod
    def get(cls) -> AcceleratorDevice:
        """Returns the shared device, creating it on first use."""
        if cls._instance is None:
            config = get_config()
            cls._instance = cls(
                power_preference=config.power_preference,
                enabled=config.accelerator_enabled,
            )
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drops the shared device so the next :meth:`get` re-initialises."""
        cls._instance = None

    def _initialize(self, power_preference: str) -> None:
        """Requests adapter and device from the WebGPU implementation."""
        try:
            self.adapter = wgpu.gpu.request_adapter_sync(power_preference=power_preference)
            if self.adapter is None:
                self.unavailable_reason = 'no compatible GPU adapter found'
                logger.warning("No compatible GPU adapter found")
                return
            self.device = self.adapter.request_device_sync()
            self.limits = dict(self.device.limits)
            logger.info(f"Accelerator initialized: {self.name}")
        except Exception as e:
            logger.error(f"Failed to initialize WebGPU: {e}")
            self.unavailable_reason = str(e) or e.__class__.__name__
            self.adapter = None
            self.device = None

    @property
    def is_available(self) -> bool:
        """Indicates if a usable GPU device is active."""
        return self.device is not None

    @property
    def name(self) -> str:
        if self.adapter is None:
            return 'unavailable'
        return getattr(self.adapter, 'summary', None) or 'WebGPU adapter'

    def compute_pipeline(self, kernel: str, workgroup_size: int) -> Any:
        """Returns a cached compute pipeline for a kernel."""
        key = (kernel, workgroup_size)
        pipeline = self._pipelines.get(key)
        if pipeline is None:
            module = self.device.create_shader_module(code=load_shader(kernel, workgroup_size))
            pipeline = self.device.create_compute_pipeline(
                layout='auto',
                compute={'module': module, 'entry_point': 'main'},
            )
            self._pipelines[key] = pipeline
        return pipeline
