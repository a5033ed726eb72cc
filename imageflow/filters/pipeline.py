# ImageFlow Filters - Pipeline
"""
FilterPipeline for chaining multiple filters.

Filters run strictly in sequence: stage ``i + 1`` starts after stage ``i``
has completely written its output. The pipeline alternates between two
working buffers, so a chain of any length allocates at most two buffers
besides the caller's input, which is only read.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterator
import logging
import os
import re
import time

from pydantic import ValidationError

from imageflow.buffer import PixelBuffer
from imageflow.errors import ImageFlowError, PipelineFormatError
from .base import ExecutionPath, Filter, _parse_value, _split_filter_args
from .document import PipelineDocument, StageDocument
from .registry import FilterRegistry, default_registry

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, str], None]
"Receives (percent complete, name of the finished stage)"


class ProcessingMode(Enum):
    """Where accelerator capable stages run."""
    AUTO = 'auto'                    # accelerator variants try the GPU, host filters stay on host
    CPU_ONLY = 'cpu_only'            # every stage runs its host implementation
    GPU_PREFERRED = 'gpu_preferred'  # filters added by id use their accelerator variant


@dataclass
class PipelineMetrics:
    """Timing of a single pipeline run.

    :param total_time_ms: Wall clock time of the whole run
    :param filter_times: Per-stage durations in milliseconds
    :param filter_names: Per-stage filter names
    :param execution_paths: Code path each stage actually took
    :param gpu_used: Whether any stage was eligible for the accelerator
    """
    total_time_ms: float = 0.0
    filter_times: list[float] = field(default_factory=list)
    filter_names: list[str] = field(default_factory=list)
    execution_paths: list[ExecutionPath | None] = field(default_factory=list)
    gpu_used: bool = False

    def summary(self) -> str:
        """Generate human-readable summary of metrics."""
        lines = [
            "=== Pipeline Execution Metrics ===",
            f"Total time: {self.total_time_ms:.2f}ms",
            f"Accelerator: {'yes' if self.gpu_used else 'no'}",
            "",
            "Per-stage breakdown:",
        ]
        for name, ms, path in zip(self.filter_names, self.filter_times, self.execution_paths):
            path_str = path.value if path is not None else '-'
            lines.append(f"  {name}: {ms:.2f}ms ({path_str})")
        return "\n".join(lines)


@dataclass
class FilterPipeline:
    """Ordered chain of filters applied in sequence.

    The pipeline owns its filters. Copying a pipeline duplicates every filter,
    so two pipelines never share a mutable filter instance.

    Example::

        pipeline = FilterPipeline([Grayscale(), BoxBlur(radius=3)])
        pipeline.append(Invert())
        result = pipeline.apply(image)
        print(pipeline.describe())
    """
    filters: list[Filter] = field(default_factory=list)
    mode: ProcessingMode = ProcessingMode.AUTO
    registry: FilterRegistry | None = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        filters = list(self.filters)
        self.filters = []
        for f in filters:
            self.append(f)

    # === Filter management ===

    def _check_new(self, filter: Filter | None) -> None:
        if filter is None:
            raise ValueError("FilterPipeline: filter must not be None")
        if not isinstance(filter, Filter):
            raise ValueError(f"FilterPipeline: expected a Filter, got {type(filter).__name__}")
        if any(f is filter for f in self.filters):
            raise ValueError(f"FilterPipeline: {filter.name} is already part of this pipeline")

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.filters):
            raise IndexError(
                f"FilterPipeline: index {index} out of range for {len(self.filters)} filter(s)")

    def append(self, filter: Filter) -> 'FilterPipeline':
        """Add filter to the end of the pipeline (chainable)."""
        self._check_new(filter)
        self.filters.append(filter)
        return self

    def add(self, filter_id: str, **params: Any) -> Filter:
        """Create a filter from the registry and append it.

        In :attr:`ProcessingMode.GPU_PREFERRED` mode the accelerator variant is
        used when one is registered.
        """
        prefer_accelerator = self.mode is ProcessingMode.GPU_PREFERRED
        filter = self._registry().create(filter_id, prefer_accelerator=prefer_accelerator, **params)
        self.append(filter)
        return filter

    def insert_at(self, index: int, filter: Filter) -> None:
        """Insert a filter before ``index``. ``index == len(self)`` appends."""
        if not 0 <= index <= len(self.filters):
            raise IndexError(
                f"FilterPipeline: insert index {index} out of range for {len(self.filters)} filter(s)")
        self._check_new(filter)
        self.filters.insert(index, filter)

    def remove_at(self, index: int) -> None:
        """Remove and release the filter at ``index``."""
        self._check_index(index)
        del self.filters[index]

    def move_up(self, index: int) -> None:
        """Swap the filter at ``index`` with its predecessor. No-op for the first filter."""
        self._check_index(index)
        if index == 0:
            return
        self.filters[index - 1], self.filters[index] = self.filters[index], self.filters[index - 1]

    def move_down(self, index: int) -> None:
        """Swap the filter at ``index`` with its successor. No-op for the last filter."""
        self._check_index(index)
        if index == len(self.filters) - 1:
            return
        self.filters[index], self.filters[index + 1] = self.filters[index + 1], self.filters[index]

    def clear(self) -> None:
        """Remove all filters."""
        self.filters.clear()

    def size(self) -> int:
        return len(self.filters)

    def is_empty(self) -> bool:
        return not self.filters

    def filter_at(self, index: int) -> Filter:
        """The filter at ``index``, raising IndexError when out of range."""
        self._check_index(index)
        return self.filters[index]

    def __len__(self) -> int:
        return len(self.filters)

    def __iter__(self) -> Iterator[Filter]:
        return iter(self.filters)

    def __getitem__(self, index: int) -> Filter:
        return self.filter_at(index)

    # === Processing ===

    def apply(
        self,
        image: PixelBuffer,
        progress: ProgressCallback | None = None,
        *,
        consume: bool = False,
    ) -> PixelBuffer:
        """Apply all filters in sequence.

        :param image: The input. Only read unless ``consume`` is set.
        :param progress: Called on the calling thread after every stage with
            the cumulative percentage and the stage's filter name.
        :param consume: Allow the pipeline to reuse the input's storage as a
            working buffer. The caller must not use ``image`` afterwards.
        :returns: The final buffer. A copy of the input for an empty pipeline.
        """
        if not self.filters:
            return image if consume else image.copy()

        total = len(self.filters)
        current = image
        scratch: PixelBuffer | None = None

        for index, f in enumerate(self.filters):
            target = scratch if scratch is not None else current.empty_like()
            self._run_stage(f, current, target)
            scratch = current if (current is not image or consume) else None
            current = target
            if progress is not None:
                progress(100.0 * (index + 1) / total, f.name)

        return current

    def apply_with_progress(self, image: PixelBuffer, callback: ProgressCallback) -> PixelBuffer:
        """Apply all filters, reporting progress after every stage."""
        return self.apply(image, callback)

    def apply_with_metrics(self, image: PixelBuffer) -> tuple[PixelBuffer, PipelineMetrics]:
        """Apply all filters and collect per-stage timing.

        :returns: (output, metrics)
        """
        start = time.perf_counter()
        output = self.apply(image)
        total_ms = (time.perf_counter() - start) * 1000.0

        metrics = PipelineMetrics(
            total_time_ms=total_ms,
            filter_times=[f.last_execution_duration_ms for f in self.filters],
            filter_names=[f.name for f in self.filters],
            execution_paths=[f.last_execution_path for f in self.filters],
            gpu_used=(self.mode is not ProcessingMode.CPU_ONLY
                      and any(f.supports_accelerator() for f in self.filters)),
        )
        return output, metrics

    def _run_stage(self, f: Filter, source: PixelBuffer, target: PixelBuffer) -> None:
        if self.mode is ProcessingMode.CPU_ONLY:
            f.apply_host(source, target)
        else:
            f.apply(source, target)
        logger.debug("%s: %.2fms (%s)", f.name, f.last_execution_duration_ms,
                     f.last_execution_path.value if f.last_execution_path else '-')

    # === Description ===

    def describe(self) -> str:
        """One line summary, e.g. '2 filter(s): Grayscale → Invert'."""
        if not self.filters:
            return "Empty pipeline"
        return f"{len(self.filters)} filter(s): " + " → ".join(f.name for f in self.filters)

    def to_detailed_string(self) -> str:
        """Numbered multi-line listing."""
        lines = [f"FilterPipeline[{len(self.filters)}]:"]
        for index, f in enumerate(self.filters, start=1):
            lines.append(f"  {index}. {f.name}")
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.describe()

    # === Copying ===

    def copy(self) -> 'FilterPipeline':
        """Deep copy: every filter is duplicated."""
        return FilterPipeline(
            filters=[f.duplicate() for f in self.filters],
            mode=self.mode,
            registry=self.registry,
        )

    def __copy__(self) -> 'FilterPipeline':
        return self.copy()

    def __deepcopy__(self, memo: dict) -> 'FilterPipeline':
        return self.copy()

    # === Serialization ===

    def _registry(self, registry: FilterRegistry | None = None) -> FilterRegistry:
        return registry or self.registry or default_registry()

    def to_document(self) -> PipelineDocument:
        """The pipeline as a persistable document."""
        return PipelineDocument(
            mode=self.mode.value,
            pipeline=[
                StageDocument(
                    name=f.name,
                    type=f.filter_id,
                    accelerator=f.accelerated,
                    params=f.params(),
                )
                for f in self.filters
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize pipeline to dictionary."""
        return self.to_document().model_dump()

    @classmethod
    def from_document(
        cls,
        document: PipelineDocument,
        registry: FilterRegistry | None = None,
    ) -> 'FilterPipeline':
        """Build a pipeline from a document, creating filters through the registry."""
        registry = registry or default_registry()
        filters = [
            registry.create(stage.type, prefer_accelerator=stage.accelerator, **stage.params)
            for stage in document.pipeline
        ]
        return cls(filters=filters, mode=ProcessingMode(document.mode), registry=registry)

    @classmethod
    def from_dict(cls, data: dict[str, Any], registry: FilterRegistry | None = None) -> 'FilterPipeline':
        """Deserialize pipeline from dictionary."""
        return cls.from_document(PipelineDocument.model_validate(data), registry)

    def save_to(self, path: str | Path) -> bool:
        """Write the pipeline as JSON.

        The document is written to a temporary file first, an existing file
        is only replaced once writing succeeded.

        :returns: False if the pipeline could not be serialized or the file
            could not be written
        """
        target = Path(path)
        temp = target.with_name(target.name + '.tmp')
        try:
            temp.write_text(self.to_document().model_dump_json(indent=2), encoding='utf-8')
            os.replace(temp, target)
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Could not save pipeline to %s: %s", path, e)
            temp.unlink(missing_ok=True)
            return False
        return True

    def load_from(self, path: str | Path, registry: FilterRegistry | None = None) -> bool:
        """Replace this pipeline's filters with those saved in ``path``.

        The whole document is validated and every filter created before the
        pipeline is modified. On any failure the pipeline stays unchanged.

        :returns: False if the file is missing, unreadable or malformed
        """
        registry = self._registry(registry)
        try:
            text = Path(path).read_text(encoding='utf-8')
            loaded = self.from_document(PipelineDocument.model_validate_json(text), registry)
        except (OSError, ValidationError, ImageFlowError, TypeError, ValueError) as e:
            logger.warning("Could not load pipeline from %s: %s", path, e)
            return False

        self.filters = loaded.filters
        self.mode = loaded.mode
        return True

    @classmethod
    def parse(
        cls,
        text: str,
        registry: FilterRegistry | None = None,
        mode: ProcessingMode = ProcessingMode.AUTO,
    ) -> 'FilterPipeline':
        """Parse filter string into pipeline.

        Stages are separated by ``|`` or ``;``. Each stage is a filter id
        followed by positional or ``key=value`` parameters. ``gpu=true``
        selects the accelerator variant.

        Examples:
            'grayscale | boxblur 3 | brightness factor=1.2'
            'boxblur radius=2 gpu=true; invert'
        """
        registry = registry or default_registry()
        pipeline = cls(mode=mode, registry=registry)
        if not text:
            return pipeline

        for part in re.split(r'[|;]', text):
            part = part.strip()
            if not part:
                continue
            pipeline.append(_parse_stage(part, registry, mode))

        return pipeline

    def to_string(self) -> str:
        """Convert pipeline to compact string format."""
        return ' | '.join(f.to_string() for f in self.filters)


def _parse_stage(text: str, registry: FilterRegistry, mode: ProcessingMode) -> Filter:
    """Parse a single 'id arg key=value' stage."""
    parts = _split_filter_args(text)
    filter_id = parts[0].lower()
    entry = registry.info_for(filter_id)
    if entry is None:
        raise PipelineFormatError(f"Unknown filter: {filter_id}")

    kwargs: dict[str, Any] = {}
    positional = []
    for arg in parts[1:]:
        if '=' in arg:
            key, value = arg.split('=', 1)
            kwargs[key.strip()] = _parse_value(value.strip())
        else:
            positional.append(_parse_value(arg))

    prefer_accelerator = kwargs.pop('gpu', mode is ProcessingMode.GPU_PREFERRED)

    if positional:
        param_names = getattr(entry.create_host, 'parameter_names', lambda: [])()
        if len(positional) > len(param_names):
            raise PipelineFormatError(
                f"Too many positional args for {filter_id}: "
                f"got {len(positional)}, max {len(param_names)}")
        for name, value in zip(param_names, positional):
            kwargs.setdefault(name, value)

    try:
        return registry.create(filter_id, prefer_accelerator=bool(prefer_accelerator), **kwargs)
    except (TypeError, ValueError) as e:
        raise PipelineFormatError(f"Invalid parameters for {filter_id}: {e}") from e


__all__ = [
    'FilterPipeline',
    'PipelineMetrics',
    'ProcessingMode',
    'ProgressCallback',
]
