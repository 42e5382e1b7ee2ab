"""Format-specific response writers.

each writer streams a whole response to a binary sink in one pass, pulling
results off the result set one at a time. the row shaping lives on
ResponseData; writers only deal with the wire format.

if the sink fails part way the error propagates straight away as a
ResponseWriteError. whatever was already written stays written.
"""

import csv
import io
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, BinaryIO

from metricwire.models.dimension import Dimension
from metricwire.response.errors import ResponseWriteError
from metricwire.response.json_stream import JsonStreamWriter
from metricwire.response.response_data import Sidecar

if TYPE_CHECKING:
    from metricwire.response.response_data import ResponseData

logger = logging.getLogger(__name__)


class ResponseWriter(ABC):
    """Writes a response in one particular format."""

    # mime type the transport should advertise for this writer's output
    media_type: str = "application/octet-stream"

    @abstractmethod
    def write(self, response_data: "ResponseData", sink: BinaryIO) -> None:
        """Stream the full response to the sink."""


class JsonResponseWriter(ResponseWriter):
    """Flat json.

    writes::

        {
          "rows": [
            {"dateTime": "...", "dim|field": "...", "metric": 1},
            ...
          ],
          "meta": {...}
        }

    with meta only present when there are intervals or pagination to report.
    """

    media_type = "application/json"

    def write(self, response_data: "ResponseData", sink: BinaryIO) -> None:
        generator = JsonStreamWriter(sink)
        row: dict[str, Any] | None = None
        try:
            generator.start_object()

            generator.start_array("rows")
            for result in response_data.result_set:
                row = response_data.build_result_row(result)
                generator.write_value(row)
            row = None
            generator.end_array()

            response_data.write_meta_object(
                generator,
                response_data.missing_intervals,
                response_data.volatile_intervals,
                response_data.pagination,
            )

            generator.end_object()
            generator.flush()
        except OSError as e:
            logger.error("Unable to write JSON: %s", e)
            raise ResponseWriteError(f"Unable to write JSON: {e}", row=row) from e


class JsonApiResponseWriter(ResponseWriter):
    """Json with dimension sidecars.

    rows only carry the key of each dimension; the requested dimension fields
    are written once per distinct combination in an array named after the
    dimension, after all the rows::

        {
          "rows": [{"dateTime": "...", "country": "US", "clicks": 42}],
          "country": [{"id": "US", "name": "United States"}],
          "meta": {...}
        }

    the sidecars have to be held in memory until the rows are done, but they
    only grow with the number of distinct dimension values.
    """

    media_type = "application/vnd.api+json"

    def write(self, response_data: "ResponseData", sink: BinaryIO) -> None:
        generator = JsonStreamWriter(sink)
        row: dict[str, Any] | None = None

        # one sidecar per dimension column, even if no row ends up using it
        sidecars: dict[Dimension, Sidecar] = {
            column.dimension: Sidecar()
            for column in response_data.result_set.schema.dimension_columns
        }

        try:
            generator.start_object()

            generator.start_array("rows")
            for result in response_data.result_set:
                row = response_data.build_result_row_with_sidecars(result, sidecars)
                generator.write_value(row)
            row = None
            generator.end_array()

            for dimension, sidecar in sidecars.items():
                generator.start_array(dimension.api_name)
                for dimension_row in sidecar:
                    generator.start_object()
                    for dimension_field, value in dimension_row.items():
                        generator.write_field(dimension_field.name, value)
                    generator.end_object()
                generator.end_array()

            response_data.write_meta_object(
                generator,
                response_data.missing_intervals,
                response_data.volatile_intervals,
                response_data.pagination,
            )

            generator.end_object()
            generator.flush()
        except OSError as e:
            logger.error("Unable to write JSON: %s", e)
            raise ResponseWriteError(f"Unable to write JSON: {e}", row=row) from e


class CsvResponseWriter(ResponseWriter):
    """Csv: a header record followed by one record per result.

    each record goes through a small text buffer and is flushed to the sink
    on its own, so memory stays flat however many rows there are. quoting is
    the csv module's standard minimal quoting.
    """

    media_type = "text/csv"

    def write(self, response_data: "ResponseData", sink: BinaryIO) -> None:
        headers = response_data.build_csv_headers()
        buffer = io.StringIO()
        # rows are dicts keyed by header name, so cells always land under the
        # right column. None and missing cells come out empty, and a dimension
        # the schema doesn't declare has no column so its cells are dropped
        writer = csv.DictWriter(
            buffer,
            fieldnames=headers,
            restval="",
            extrasaction="ignore",
            lineterminator="\n",
        )

        try:
            writer.writeheader()
            self._flush(buffer, sink)
        except OSError as e:
            logger.error("Unable to write CSV header: %s", e)
            raise ResponseWriteError(f"Unable to write CSV header: {e}") from e

        for result in response_data.result_set:
            row = response_data.build_result_row(result)
            try:
                writer.writerow(row)
                self._flush(buffer, sink)
            except OSError as e:
                msg = f"Unable to write CSV data row: {row}"
                logger.error(msg, exc_info=True)
                raise ResponseWriteError(msg, row=row) from e

        flush = getattr(sink, "flush", None)
        if flush is not None:
            try:
                flush()
            except OSError as e:
                logger.error("Unable to flush CSV: %s", e)
                raise ResponseWriteError(f"Unable to flush CSV: {e}") from e

    @staticmethod
    def _flush(buffer: io.StringIO, sink: BinaryIO) -> None:
        sink.write(buffer.getvalue().encode("utf-8"))
        buffer.seek(0)
        buffer.truncate(0)
