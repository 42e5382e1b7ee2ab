"""Picking a writer for the requested format.

the selector is a plain format key -> writer mapping. custom formats can be
registered at startup with add_writer; after that it's only read, so there's
no locking.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, BinaryIO

from metricwire.models.request import ResponseFormatType
from metricwire.response.errors import WriterConfigurationError
from metricwire.response.writers import (
    CsvResponseWriter,
    JsonApiResponseWriter,
    JsonResponseWriter,
    ResponseWriter,
)

if TYPE_CHECKING:
    from metricwire.response.response_data import ResponseData

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = ResponseFormatType.JSON


def _format_key(response_format: ResponseFormatType | str) -> str:
    # str enums hash by member name, not value, so normalise to plain strings
    if isinstance(response_format, Enum):
        return str(response_format.value)
    return str(response_format).lower()


class ResponseWriterSelector:
    """Maps output formats to response writers.

    a missing format, or one nobody registered a writer for, falls back to
    the default (json) writer. the default itself has to be there - that's
    checked up front so a broken configuration fails at startup rather than
    on the first request.
    """

    def __init__(
        self,
        writers: dict[ResponseFormatType | str, ResponseWriter] | None = None,
        default_format: ResponseFormatType | str = DEFAULT_FORMAT,
    ) -> None:
        if writers is None:
            writers = {
                ResponseFormatType.CSV: CsvResponseWriter(),
                ResponseFormatType.JSONAPI: JsonApiResponseWriter(),
                ResponseFormatType.JSON: JsonResponseWriter(),
            }
        self._writers: dict[str, ResponseWriter] = {
            _format_key(fmt): writer for fmt, writer in writers.items()
        }
        self.default_format = _format_key(default_format)
        if self.default_format not in self._writers:
            raise WriterConfigurationError(
                f"No writer registered for default format '{self.default_format}'"
            )

    def select(self, response_format: ResponseFormatType | str | None) -> ResponseWriter:
        """Get the writer for a format, or the default writer."""
        if response_format is None:
            return self._writers[self.default_format]

        key = _format_key(response_format)
        writer = self._writers.get(key)
        if writer is None:
            logger.warning(
                "No writer registered for format '%s', using '%s'", key, self.default_format
            )
            return self._writers[self.default_format]

        logger.debug("Selected %s for format '%s'", type(writer).__name__, key)
        return writer

    def add_writer(self, response_format: ResponseFormatType | str, writer: ResponseWriter) -> None:
        """Register (or replace) the writer for a format. startup only."""
        self._writers[_format_key(response_format)] = writer

    @property
    def formats(self) -> list[str]:
        return list(self._writers)

    def __contains__(self, response_format: object) -> bool:
        if not isinstance(response_format, (str, Enum)):
            return False
        return _format_key(response_format) in self._writers


class FormatDispatchWriter(ResponseWriter):
    """Writer that hands off to whichever writer matches the response's format.

    this is what ResponseData uses by default, so the transport never has to
    know about formats at all.
    """

    def __init__(self, selector: ResponseWriterSelector | None = None) -> None:
        self.selector = selector or ResponseWriterSelector()

    def write(self, response_data: "ResponseData", sink: BinaryIO) -> None:
        writer = self.selector.select(response_data.response_format)
        writer.write(response_data, sink)

    def add_response_type(self, response_format: ResponseFormatType | str, writer: ResponseWriter) -> None:
        """Add a custom format -> writer mapping."""
        self.selector.add_writer(response_format, writer)
