# ImageFlow Filters - Registry
"""
Catalog mapping stable filter identifiers to constructors.

A registry is a plain object: tests build their own with
:func:`create_default_registry`, applications share the process wide one
from :func:`default_registry`. Entries are registered once at startup and
read concurrently afterwards. Concurrent registration is not supported.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, is_dataclass
from typing import Any, Callable
import logging

from imageflow.errors import FilterNotFoundError
from .base import Filter

logger = logging.getLogger(__name__)

FilterConstructor = Callable[..., Filter]


@dataclass(frozen=True)
class FilterEntry:
    """Registry entry with display metadata and constructors."""

    id: str
    display_name: str
    description: str
    create_host: FilterConstructor
    create_accelerator: FilterConstructor | None = None
    has_parameters: bool = False

    @property
    def has_accelerator(self) -> bool:
        return self.create_accelerator is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert metadata to a dictionary."""
        return {
            'id': self.id,
            'display_name': self.display_name,
            'description': self.description,
            'has_accelerator': self.has_accelerator,
            'has_parameters': self.has_parameters,
        }


def _infer_has_parameters(constructor: FilterConstructor) -> bool:
    if isinstance(constructor, type) and is_dataclass(constructor):
        return any(not f.name.startswith('_') for f in fields(constructor))
    return False


class FilterRegistry:
    """Catalog of available filters, keyed by identifier.

    Example:
        registry = FilterRegistry()
        registry.register('boxblur', 'Box Blur', 'Averages neighbours',
                          BoxBlur, BoxBlurGPU)
        blur = registry.create('boxblur', prefer_accelerator=True, radius=3)
    """

    def __init__(self) -> None:
        self._entries: dict[str, FilterEntry] = {}

    def register(
        self,
        filter_id: str,
        display_name: str,
        description: str,
        host_constructor: FilterConstructor,
        accelerator_constructor: FilterConstructor | None = None,
        has_parameters: bool | None = None,
    ) -> FilterEntry:
        """Register a filter. Registering an existing id replaces the entry.

        :param filter_id: Stable identifier used in saved pipelines
        :param display_name: Name shown to users
        :param description: Short description
        :param host_constructor: Callable creating the host filter; receives
            filter parameters as keyword arguments
        :param accelerator_constructor: Optional callable creating the
            accelerator variant
        :param has_parameters: Whether the filter has adjustable parameters.
            Inferred from dataclass fields when omitted.
        """
        if has_parameters is None:
            has_parameters = _infer_has_parameters(host_constructor)
        entry = FilterEntry(
            id=filter_id,
            display_name=display_name,
            description=description,
            create_host=host_constructor,
            create_accelerator=accelerator_constructor,
            has_parameters=has_parameters,
        )
        if filter_id in self._entries:
            logger.debug("Replacing registered filter %s", filter_id)
        self._entries[filter_id] = entry
        return entry

    def create(self, filter_id: str, prefer_accelerator: bool = False, **params: Any) -> Filter:
        """Create a new filter instance.

        :param filter_id: Registered identifier
        :param prefer_accelerator: Use the accelerator variant when one is registered
        :param params: Filter parameters, e.g. ``radius=3``
        :raises FilterNotFoundError: if ``filter_id`` is not registered
        """
        entry = self._entries.get(filter_id)
        if entry is None:
            raise FilterNotFoundError(filter_id)
        if prefer_accelerator and entry.create_accelerator is not None:
            return entry.create_accelerator(**params)
        return entry.create_host(**params)

    def list_ids(self) -> list[str]:
        """All registered identifiers, sorted."""
        return sorted(self._entries)

    def info_for(self, filter_id: str) -> FilterEntry | None:
        """Metadata for a filter, or None if not registered."""
        return self._entries.get(filter_id)

    def __contains__(self, filter_id: object) -> bool:
        return filter_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries.values())


def register_builtin_filters(registry: FilterRegistry) -> FilterRegistry:
    """Register the five standard filters."""
    from .blur import BoxBlur, BoxBlurGPU
    from .color import Brightness, Grayscale, GrayscaleGPU, Invert, Sepia

    registry.register(
        'grayscale', 'Grayscale', 'Converts the image to grayscale',
        Grayscale, GrayscaleGPU)
    registry.register(
        'invert', 'Invert', 'Inverts the image colors',
        Invert)
    registry.register(
        'brightness', 'Brightness', 'Adjusts the image brightness',
        Brightness)
    registry.register(
        'boxblur', 'Box Blur', 'Blurs the image with a box kernel',
        BoxBlur, BoxBlurGPU)
    registry.register(
        'sepia', 'Sepia Tone', 'Applies a vintage sepia tone',
        Sepia)
    logger.debug("Registered %d filters", len(registry))
    return registry


def create_default_registry() -> FilterRegistry:
    """A new registry populated with the standard filters."""
    return register_builtin_filters(FilterRegistry())


_default_registry: FilterRegistry | None = None


def default_registry() -> FilterRegistry:
    """The process wide registry, built on first use."""
    global _default_registry
    if _default_registry is None:
        _default_registry = create_default_registry()
    return _default_registry


__all__ = [
    'FilterEntry',
    'FilterRegistry',
    'register_builtin_filters',
    'create_default_registry',
    'default_registry',
]
