"""
Exception types raised by ImageFlow.

Argument and range misuse is reported with the built-in ``ValueError`` and
``IndexError``. The classes below cover the conditions that callers may want
to catch specifically.
"""


class ImageFlowError(Exception):
    """Base class for ImageFlow specific errors."""


class FilterNotFoundError(ImageFlowError, KeyError):
    """No filter is registered under the requested identifier."""

    def __init__(self, filter_id: str):
        super().__init__(filter_id)
        self.filter_id = filter_id

    def __str__(self) -> str:
        return f"Unknown filter: {self.filter_id}"


class PipelineFormatError(ImageFlowError, ValueError):
    """A pipeline description could not be parsed."""


class AcceleratorUnavailableError(ImageFlowError, RuntimeError):
    """The accelerator device cannot be used.

    Raised inside the accelerator layer only. Accelerated filters convert it
    into a host fallback, it never reaches pipeline callers.
    """


class CodecError(ImageFlowError, OSError):
    """An image file could not be decoded or encoded."""


__all__ = [
    'ImageFlowError',
    'FilterNotFoundError',
    'PipelineFormatError',
    'AcceleratorUnavailableError',
    'CodecError',
]
