# ImageFlow Filters - Pipeline Document
"""
Models of the saved pipeline document.

Example document::

    {
      "version": 1,
      "mode": "auto",
      "pipeline": [
        {"name": "Grayscale", "type": "grayscale", "accelerator": false, "params": {}},
        {"name": "Box Blur (radius=3)", "type": "boxblur", "accelerator": false,
         "params": {"radius": 3}}
      ]
    }

``name`` is informational, stages are rebuilt from ``type`` (the registry
identifier), ``accelerator`` and ``params``.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

FORMAT_VERSION = 1


class StageDocument(BaseModel):
    """One pipeline stage."""

    model_config = ConfigDict(extra='ignore')

    name: str = ''
    type: str = Field(min_length=1)
    accelerator: bool = False
    params: dict[str, Any] = Field(default_factory=dict)


class PipelineDocument(BaseModel):
    """A complete saved pipeline."""

    model_config = ConfigDict(extra='ignore')

    version: int = Field(default=FORMAT_VERSION, ge=1, le=FORMAT_VERSION)
    mode: Literal['auto', 'cpu_only', 'gpu_preferred'] = 'auto'
    pipeline: list[StageDocument] = Field(default_factory=list)


__all__ = ['FORMAT_VERSION', 'StageDocument', 'PipelineDocument']
