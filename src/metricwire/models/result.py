"""Result rows and result sets.

these are the in-memory shape of a computed query result. plain dataclasses
rather than pydantic since they're built once per row on the hot path and
never validated from untrusted input.
"""

from collections.abc import Callable, Generator, Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from metricwire.models.dimension import Dimension, DimensionColumn, DimensionField, MetricColumn


@dataclass(frozen=True, eq=False)
class DimensionRow:
    """The resolved row of one dimension: field -> value."""

    dimension: Dimension
    values: dict[DimensionField, str | None] = field(default_factory=dict)

    def get(self, dimension_field: DimensionField) -> str | None:
        """Value of a field, or None if the row doesn't carry it."""
        return self.values.get(dimension_field)

    @property
    def key_value(self) -> str | None:
        return self.values.get(self.dimension.key)

    @classmethod
    def of(cls, dimension: Dimension, **values: str | None) -> "DimensionRow":
        """Build a row from field names, handy for tests and fixtures."""
        return cls(dimension, {DimensionField(name=k): v for k, v in values.items()})


@dataclass(frozen=True, eq=False)
class Result:
    """One output row: a timestamp plus dimension rows and metric values.

    dimension_rows iteration order is the column order used for the output
    row, so producers should build it in schema order.
    """

    timestamp: datetime
    dimension_rows: dict[DimensionColumn, DimensionRow] = field(default_factory=dict)
    metric_values: dict[MetricColumn, Any] = field(default_factory=dict)

    def get_metric_value(self, column: MetricColumn | None) -> Any:
        """Metric value for a column; None for unknown or absent columns."""
        if column is None:
            return None
        return self.metric_values.get(column)


@dataclass(frozen=True)
class ResultSetSchema:
    """Which dimension and metric columns a result set carries, in order."""

    dimension_columns: tuple[DimensionColumn, ...] = ()
    metric_columns: tuple[MetricColumn, ...] = ()

    def get_metric_column(self, name: str) -> MetricColumn | None:
        for column in self.metric_columns:
            if column.name == name:
                return column
        return None

    def get_dimension_column(self, api_name: str) -> DimensionColumn | None:
        for column in self.dimension_columns:
            if column.name == api_name:
                return column
        return None


class ResultSet:
    """An ordered sequence of results with their schema.

    wraps any iterable - a list gives a reusable result set, a generator gives
    a single-pass one (which is what the duckdb executor hands out so large
    results never sit in memory). either way iteration order is output order,
    nothing here re-sorts.

    ``on_close`` releases whatever the results are read from (a cursor, say).
    it runs from close(), which is safe to call whether or not the results
    were ever iterated.
    """

    def __init__(
        self,
        schema: ResultSetSchema,
        results: Iterable[Result] = (),
        on_close: Callable[[], None] | None = None,
    ) -> None:
        self.schema = schema
        self._results = results
        self._on_close = on_close

    def __iter__(self) -> Iterator[Result]:
        return iter(self._results)

    def close(self) -> None:
        """Stop a generator-backed result set and release its source.

        a list-backed result set stays usable.
        """
        if isinstance(self._results, Generator):
            self._results.close()
        if self._on_close is not None:
            on_close, self._on_close = self._on_close, None
            on_close()

    def __enter__(self) -> "ResultSet":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        dims = [c.name for c in self.schema.dimension_columns]
        metrics = [c.name for c in self.schema.metric_columns]
        return f"ResultSet(dimensions={dims}, metrics={metrics})"
