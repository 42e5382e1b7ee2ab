"""Response data - everything needed to turn a result set into a response.

holds the result set along with what the caller asked to see, and knows how
to shape a single result into an output row. the format-specific writers
drive the streaming; this class does the per-row work they share:

  - flat rows (json, csv): requested dimension fields inline
  - sidecar rows (jsonapi): dimension keys inline, the requested fields
    collected into per-dimension deduplicated side tables
  - the optional meta block (missing/volatile intervals, pagination)
"""

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any, BinaryIO

from metricwire.formatting import format_datetime, format_interval
from metricwire.models.dimension import Dimension, DimensionField, MetricColumn
from metricwire.models.request import DataRequest, Interval, Pagination, ResponseFormatType
from metricwire.models.result import Result, ResultSet
from metricwire.models.settings import ResponseSettings
from metricwire.naming import DimensionColumnNameCache, get_default_name_cache
from metricwire.response.errors import ResponseAlreadyWrittenError

if TYPE_CHECKING:
    from metricwire.response.json_stream import JsonStreamWriter
    from metricwire.response.writers import ResponseWriter

logger = logging.getLogger(__name__)

DATE_TIME_KEY = "dateTime"


class Sidecar:
    """Distinct field -> value maps seen for one dimension.

    deduplicated on full map equality, kept in first-seen order. size is
    bounded by the number of distinct field combinations, not by row count.
    """

    def __init__(self) -> None:
        self._rows: dict[frozenset, dict[DimensionField, str | None]] = {}

    def add(self, row: dict[DimensionField, str | None]) -> bool:
        """Add a row, returns False if an equal row was already there."""
        key = frozenset(row.items())
        if key in self._rows:
            return False
        self._rows[key] = row
        return True

    def __iter__(self) -> Iterator[dict[DimensionField, str | None]]:
        return iter(self._rows.values())

    def __len__(self) -> int:
        return len(self._rows)


class ResponseData:
    """A result set plus the request details needed to write it out.

    one instance per response. write() can only be called once since the
    sink it streams to is single use.
    """

    def __init__(
        self,
        result_set: ResultSet,
        api_metric_column_names: Iterable[str],
        requested_api_dimension_fields: Mapping[Dimension, Iterable[DimensionField]],
        response_format: ResponseFormatType | str | None = None,
        missing_intervals: Iterable[Interval] | None = None,
        volatile_intervals: Iterable[Interval] | None = None,
        pagination: Pagination | None = None,
        settings: ResponseSettings | None = None,
        name_cache: DimensionColumnNameCache | None = None,
        response_writer: "ResponseWriter | None" = None,
    ) -> None:
        """Initialize response data.

        Args:
            result_set: Results to write.
            api_metric_column_names: Names of the requested metrics, in output order.
            requested_api_dimension_fields: Fields to show per dimension. An
                empty collection means only the key field.
            response_format: Requested output format, None for the default.
            missing_intervals: Intervals over which partial data exists.
            volatile_intervals: Intervals with best-to-date data, or None.
            pagination: Pagination state, or None when not paginating.
            settings: Response settings, defaults when None.
            name_cache: Dimension column name cache, the process-wide one when None.
            response_writer: Writer used by write(), format dispatch when None.
        """
        self.result_set = result_set
        self.requested_api_dimension_fields: dict[Dimension, tuple[DimensionField, ...]] = {
            dimension: tuple(dict.fromkeys(fields))
            for dimension, fields in requested_api_dimension_fields.items()
        }
        self.response_format = response_format
        self.missing_intervals: list[Interval] = list(missing_intervals or [])
        self.volatile_intervals = list(volatile_intervals) if volatile_intervals is not None else None
        self.pagination = pagination
        self.settings = settings or ResponseSettings()
        self.name_cache = name_cache or get_default_name_cache()
        self.api_metric_columns = self._generate_api_metric_columns(api_metric_column_names)

        if response_writer is None:
            # imported here, the selector module pulls in the writers which
            # refer back to this one
            from metricwire.response.selector import FormatDispatchWriter

            response_writer = FormatDispatchWriter()
        self.response_writer = response_writer
        self._written = False

        logger.debug("Initialized with ResultSet: %s", self.result_set)

    @classmethod
    def from_request(
        cls,
        result_set: ResultSet,
        request: DataRequest,
        missing_intervals: Iterable[Interval] | None = None,
        volatile_intervals: Iterable[Interval] | None = None,
        pagination: Pagination | None = None,
        settings: ResponseSettings | None = None,
        name_cache: DimensionColumnNameCache | None = None,
    ) -> "ResponseData":
        """Build response data from a DataRequest."""
        return cls(
            result_set,
            request.metrics,
            request.dimension_fields,
            response_format=request.format,
            missing_intervals=missing_intervals,
            volatile_intervals=volatile_intervals,
            pagination=pagination,
            settings=settings,
            name_cache=name_cache,
        )

    def write(self, sink: BinaryIO) -> None:
        """Write the whole response to a binary sink in the requested format.

        the result set is closed afterwards, also when writing fails before
        every row was read.
        """
        if self._written:
            raise ResponseAlreadyWrittenError("Response has already been written")
        self._written = True
        try:
            self.response_writer.write(self, sink)
        finally:
            self.result_set.close()

    # --- row building ---

    def _generate_api_metric_columns(self, names: Iterable[str]) -> dict[str, MetricColumn | None]:
        """Pick the requested metric columns out of the result set schema.

        names missing from the schema map to None and come out as null values
        rather than failing the response - upstream is permissive about this
        and callers rely on it.
        """
        schema = self.result_set.schema
        return {name: schema.get_metric_column(name) for name in names}

    def format_timestamp(self, result: Result) -> str:
        return format_datetime(result.timestamp, self.settings.output_datetime_format)

    def get_dimension_column_name(self, dimension: Dimension, dimension_field: DimensionField) -> str:
        return self.name_cache.name_for(dimension, dimension_field)

    def build_result_row(self, result: Result) -> dict[str, Any]:
        """Build the flat output row for a result.

        dateTime first, then the requested dimensions in the result's column
        order, then the requested metrics in request order. a dimension with
        no requested fields shows its key under the dimension name, otherwise
        each requested field gets its own ``dimension|field`` column.
        """
        row: dict[str, Any] = {DATE_TIME_KEY: self.format_timestamp(result)}

        for dimension_column, dimension_row in result.dimension_rows.items():
            dimension = dimension_column.dimension
            requested_fields = self.requested_api_dimension_fields.get(dimension)
            if requested_fields is None:
                continue
            if not requested_fields:
                row[dimension.api_name] = dimension_row.get(dimension.key)
            else:
                for dimension_field in requested_fields:
                    row[self.get_dimension_column_name(dimension, dimension_field)] = (
                        dimension_row.get(dimension_field)
                    )

        self._add_metric_values(row, result)
        return row

    def build_result_row_with_sidecars(
        self, result: Result, sidecars: dict[Dimension, Sidecar]
    ) -> dict[str, Any]:
        """Build the jsonapi output row for a result, collecting sidecar rows.

        the row carries only the key value of each requested dimension. for
        dimensions with requested fields, the values of those fields (plus the key, which always
        has to be there to join on) go into that dimension's sidecar.
        """
        row: dict[str, Any] = {DATE_TIME_KEY: self.format_timestamp(result)}

        for dimension_column, dimension_row in result.dimension_rows.items():
            dimension = dimension_column.dimension
            requested_fields = self.requested_api_dimension_fields.get(dimension)
            if requested_fields is None:
                continue

            if requested_fields:
                # work on a copy - the requested fields are shared by every row
                fields = list(requested_fields)
                if dimension.key not in fields:
                    fields.append(dimension.key)
                field_values = {f: dimension_row.get(f) for f in fields}
                sidecars.setdefault(dimension, Sidecar()).add(field_values)

            row[dimension.api_name] = dimension_row.get(dimension.key)

        self._add_metric_values(row, result)
        return row

    def _add_metric_values(self, row: dict[str, Any], result: Result) -> None:
        for name, column in self.api_metric_columns.items():
            row[name] = result.get_metric_value(column)

    def build_csv_headers(self) -> list[str]:
        """Column names for the csv header, in the order rows are built.

        dimensions follow the schema's column order (which is the order results
        carry their dimension rows in) rather than request order, so header
        and rows can't drift apart.
        """
        headers = [DATE_TIME_KEY]
        for dimension_column in self.result_set.schema.dimension_columns:
            dimension = dimension_column.dimension
            requested_fields = self.requested_api_dimension_fields.get(dimension)
            if requested_fields is None:
                continue
            if not requested_fields:
                headers.append(dimension.api_name)
            else:
                headers.extend(self.get_dimension_column_name(dimension, f) for f in requested_fields)
        headers.extend(self.api_metric_columns)
        return headers

    # --- meta block ---

    def build_interval_string_list(self, intervals: Iterable[Interval]) -> list[str]:
        """Render intervals as ``start/end`` strings."""
        return [
            format_interval(
                interval,
                self.settings.output_datetime_format,
                self.settings.interval_separator,
            )
            for interval in intervals
        ]

    def write_meta_object(
        self,
        generator: "JsonStreamWriter",
        missing_intervals: list[Interval],
        volatile_intervals: list[Interval] | None,
        pagination: Pagination | None,
    ) -> None:
        """Write the meta block, if there's anything to put in it.

        skipped entirely unless there are missing intervals to report (and the
        partial data switch is on), volatile intervals, or pagination. each
        member is then only written if it has content of its own.
        """
        paginating = pagination is not None
        have_missing_intervals = self.settings.partial_data and bool(missing_intervals)
        have_volatile_intervals = bool(volatile_intervals)

        if not paginating and not have_missing_intervals and not have_volatile_intervals:
            return

        generator.start_object("meta")

        if have_missing_intervals:
            generator.write_field("missingIntervals", self.build_interval_string_list(missing_intervals))

        if have_volatile_intervals:
            generator.write_field("volatileIntervals", self.build_interval_string_list(volatile_intervals))

        if paginating:
            generator.start_object("pagination")
            for name, link in pagination.links.items():
                generator.write_field(name, link)
            generator.write_field("currentPage", pagination.page)
            generator.write_field("rowsPerPage", pagination.per_page)
            generator.write_field("numberOfResults", pagination.num_results)
            generator.end_object()

        generator.end_object()
