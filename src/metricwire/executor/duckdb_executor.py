"""DuckDB-backed result sets.

runs a query and maps its columns onto the result model, so a plain sql result
can be fed to the response writers:

  - the time column (``dateTime`` by default) becomes the row timestamp
  - ``<dimension>__<field>`` columns become fields of a known dimension
  - everything else is a metric

rows come off the cursor in fetchmany batches and are turned into Result
objects as the writer asks for them, so a big result never sits in memory.
"""

import logging
from collections.abc import Iterable, Iterator
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

import duckdb

from metricwire.models.dimension import Dimension, DimensionColumn, DimensionField, MetricColumn
from metricwire.models.result import DimensionRow, Result, ResultSet, ResultSetSchema

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = "__"


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    raise ValueError(f"Can't use {value!r} as a row timestamp")


class DuckDBExecutor:
    """Execute queries against DuckDB and hand back result sets.

    thin wrapper around duckdb that owns the connection and keeps the
    duckdb-specific bits out of the response code.
    """

    def __init__(self, database_path: str | None = None) -> None:
        """Initialize the executor.

        Args:
            database_path: Path to DuckDB file, or None for in-memory.
        """
        self.database_path = database_path
        self._conn: duckdb.DuckDBPyConnection | None = None  # lazy init

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        """Get or create the DuckDB connection."""
        if self._conn is None:
            self._conn = duckdb.connect(self.database_path or ":memory:")
        return self._conn

    def execute_result_set(
        self,
        sql: str,
        dimensions: Iterable[Dimension],
        time_column: str = "dateTime",
        batch_size: int = 1000,
    ) -> ResultSet:
        """Run a query and return its rows as a single-pass ResultSet.

        Args:
            sql: Query to run.
            dimensions: Dimensions that ``<dimension>__<field>`` columns may refer to.
            time_column: Name of the timestamp column.
            batch_size: Rows fetched from duckdb at a time.

        Raises:
            ValueError: If the query has no time column.
        """
        # each result set gets its own cursor so two of them can be streamed
        # at once off the same connection
        cursor = self.conn.cursor()
        logger.debug("Executing: %s", sql)
        try:
            cursor.execute(sql)
        except duckdb.Error:
            cursor.close()
            raise
        columns = [desc[0] for desc in cursor.description]

        if time_column not in columns:
            cursor.close()
            raise ValueError(f"Query has no '{time_column}' column, got: {', '.join(columns)}")

        dims_by_name = {d.api_name: d for d in dimensions}
        # dimension name -> [(column index, field)], in order of first appearance
        dimension_fields: dict[str, list[tuple[int, DimensionField]]] = {}
        metric_columns: list[tuple[int, MetricColumn]] = []

        for index, name in enumerate(columns):
            if name == time_column:
                continue
            dim_name, sep, field_name = name.partition(FIELD_SEPARATOR)
            if sep and dim_name in dims_by_name:
                dimension = dims_by_name[dim_name]
                dimension_field = dimension.get_field(field_name) or DimensionField(name=field_name)
                dimension_fields.setdefault(dim_name, []).append((index, dimension_field))
            else:
                metric_columns.append((index, MetricColumn(name=name)))

        dimension_columns = [
            (DimensionColumn(dimension=dims_by_name[name]), fields)
            for name, fields in dimension_fields.items()
        ]
        schema = ResultSetSchema(
            dimension_columns=tuple(column for column, _ in dimension_columns),
            metric_columns=tuple(column for _, column in metric_columns),
        )

        results = self._iter_results(
            cursor,
            columns.index(time_column),
            dimension_columns,
            metric_columns,
            batch_size,
        )
        return ResultSet(schema, results, on_close=cursor.close)

    def _iter_results(
        self,
        cursor: duckdb.DuckDBPyConnection,
        time_index: int,
        dimension_columns: list[tuple[DimensionColumn, list[tuple[int, DimensionField]]]],
        metric_columns: list[tuple[int, MetricColumn]],
        batch_size: int,
    ) -> Iterator[Result]:
        try:
            while True:
                batch = cursor.fetchmany(batch_size)
                if not batch:
                    break
                for raw in batch:
                    dimension_rows = {}
                    for column, fields in dimension_columns:
                        values = {
                            f: None if raw[i] is None else str(raw[i]) for i, f in fields
                        }
                        dimension_rows[column] = DimensionRow(column.dimension, values)
                    yield Result(
                        timestamp=_to_datetime(raw[time_index]),
                        dimension_rows=dimension_rows,
                        metric_values={column: raw[i] for i, column in metric_columns},
                    )
        finally:
            cursor.close()

    def load_file(self, table_name: str, path: str | Path) -> None:
        """Load a .parquet or .csv file as a table, picked by suffix."""
        path = Path(path)
        if path.suffix.lower() == ".parquet":
            self.load_parquet(table_name, path)
        elif path.suffix.lower() == ".csv":
            self.load_csv(table_name, path)
        else:
            raise ValueError(f"Don't know how to load '{path.name}', expected .parquet or .csv")
        logger.debug("Loaded %s into table %s", path, table_name)

    def load_parquet(self, table_name: str, path: str | Path) -> None:
        """Load a Parquet file as a table."""
        path = Path(path)
        self.conn.execute(f"""
            CREATE OR REPLACE TABLE {table_name} AS
            SELECT * FROM read_parquet('{path}')
        """)

    def load_csv(self, table_name: str, path: str | Path) -> None:
        """Load a CSV file as a table.

        read_csv_auto works out delimiters and types on its own.
        """
        path = Path(path)
        self.conn.execute(f"""
            CREATE OR REPLACE TABLE {table_name} AS
            SELECT * FROM read_csv_auto('{path}')
        """)

    def create_table_from_data(
        self, table_name: str, columns: list[str], data: list[tuple[Any, ...]]
    ) -> None:
        """Create a table from in-memory rows.

        columns are full definitions (``"country__id VARCHAR"``) since column
        names like ``dateTime`` need a type duckdb can't infer from nothing.
        """
        if not data:
            raise ValueError("Cannot create table from empty data")

        placeholders = ", ".join(["?"] * len(columns))
        col_defs = ", ".join(columns)

        self.conn.execute(f"CREATE OR REPLACE TABLE {table_name} ({col_defs})")
        self.conn.executemany(
            f"INSERT INTO {table_name} VALUES ({placeholders})",
            data,
        )

    def table_exists(self, table_name: str) -> bool:
        result = self.conn.execute(
            "SELECT COUNT(*) FROM information_schema.tables WHERE table_name = ?",
            [table_name],
        )
        return result.fetchone()[0] > 0

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "DuckDBExecutor":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
