"""Exceptions raised while building and writing responses."""

from typing import Any


class MetricWireError(Exception):
    """Base class for MetricWire errors."""


class ResponseWriteError(MetricWireError, OSError):
    """The output sink rejected a write.

    subclasses OSError so transport code that already catches io errors keeps
    working. row is the output row being written when it failed, if known.
    whatever was flushed before the failure stays flushed.
    """

    def __init__(self, message: str, row: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.row = row


class WriterConfigurationError(MetricWireError, ValueError):
    """The writer selector can't serve the default format."""


class ResponseAlreadyWrittenError(MetricWireError, RuntimeError):
    """A response was written twice - sinks are single use."""
