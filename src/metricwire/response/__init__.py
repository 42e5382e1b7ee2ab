"""Response writing for MetricWire."""

from metricwire.response.errors import (
    MetricWireError,
    ResponseAlreadyWrittenError,
    ResponseWriteError,
    WriterConfigurationError,
)
from metricwire.response.response_data import ResponseData, Sidecar
from metricwire.response.selector import FormatDispatchWriter, ResponseWriterSelector
from metricwire.response.writers import (
    CsvResponseWriter,
    JsonApiResponseWriter,
    JsonResponseWriter,
    ResponseWriter,
)

__all__ = [
    "CsvResponseWriter",
    "FormatDispatchWriter",
    "JsonApiResponseWriter",
    "JsonResponseWriter",
    "MetricWireError",
    "ResponseAlreadyWrittenError",
    "ResponseData",
    "ResponseWriteError",
    "ResponseWriter",
    "ResponseWriterSelector",
    "Sidecar",
    "WriterConfigurationError",
]
