"""Pytest fixtures for MetricWire tests."""

from collections.abc import Callable, Generator
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

from metricwire.executor.duckdb_executor import DuckDBExecutor
from metricwire.models.dimension import Dimension, DimensionColumn, DimensionField, MetricColumn
from metricwire.models.result import DimensionRow, Result, ResultSet, ResultSetSchema
from metricwire.naming import DimensionColumnNameCache
from metricwire.parser.loader import DefinitionRegistry
from metricwire.response.response_data import ResponseData


@pytest.fixture
def country() -> Dimension:
    return Dimension(api_name="country", key_field="id", fields=["id", "name"])


@pytest.fixture
def product() -> Dimension:
    return Dimension(api_name="product", key_field="sku", fields=["sku", "desc", "category"])


@pytest.fixture
def clicks() -> MetricColumn:
    return MetricColumn(name="clicks")


@pytest.fixture
def spend() -> MetricColumn:
    return MetricColumn(name="spend")


@pytest.fixture
def schema(
    country: Dimension, product: Dimension, clicks: MetricColumn, spend: MetricColumn
) -> ResultSetSchema:
    return ResultSetSchema(
        dimension_columns=(DimensionColumn(dimension=country), DimensionColumn(dimension=product)),
        metric_columns=(clicks, spend),
    )


@pytest.fixture
def make_result(
    country: Dimension, product: Dimension, clicks: MetricColumn, spend: MetricColumn
) -> Callable[..., Result]:
    """Factory for results over the country/product schema."""

    def _make(
        timestamp: datetime,
        country_values: dict[str, str],
        product_values: dict[str, str],
        clicks_value: Any = None,
        spend_value: Any = None,
    ) -> Result:
        return Result(
            timestamp=timestamp,
            dimension_rows={
                DimensionColumn(dimension=country): DimensionRow.of(country, **country_values),
                DimensionColumn(dimension=product): DimensionRow.of(product, **product_values),
            },
            metric_values={clicks: clicks_value, spend: spend_value},
        )

    return _make


@pytest.fixture
def sample_results(make_result: Callable[..., Result]) -> list[Result]:
    """Three rows: two share the same country, two share the same product."""
    return [
        make_result(
            datetime(2024, 1, 1),
            {"id": "US", "name": "United States"},
            {"sku": "A1", "desc": "Anvil", "category": "tools"},
            42,
            10.5,
        ),
        make_result(
            datetime(2024, 1, 1),
            {"id": "UK", "name": "United Kingdom"},
            {"sku": "A1", "desc": "Anvil", "category": "tools"},
            7,
            3.25,
        ),
        make_result(
            datetime(2024, 1, 2, 12, 30, 15, 123456),
            {"id": "US", "name": "United States"},
            {"sku": "B2", "desc": "Bucket, large", "category": "garden"},
            0,
            None,
        ),
    ]


@pytest.fixture
def result_set(schema: ResultSetSchema, sample_results: list[Result]) -> ResultSet:
    return ResultSet(schema, sample_results)


@pytest.fixture
def name_cache() -> DimensionColumnNameCache:
    """A fresh name cache so tests don't share cached names."""
    return DimensionColumnNameCache()


@pytest.fixture
def make_response(
    result_set: ResultSet, name_cache: DimensionColumnNameCache
) -> Callable[..., ResponseData]:
    """Factory for ResponseData over the sample result set."""

    def _make(
        metrics: list[str],
        dimension_fields: dict[Dimension, list[DimensionField]],
        results: ResultSet | None = None,
        **kwargs: Any,
    ) -> ResponseData:
        kwargs.setdefault("name_cache", name_cache)
        return ResponseData(results or result_set, metrics, dimension_fields, **kwargs)

    return _make


@pytest.fixture
def sample_definitions_yaml() -> str:
    return """
settings:
  output_datetime_format: "%Y-%m-%d %H:%M:%S.%L"
  partial_data: true

dimensions:
  - api_name: country
    key_field: id
    fields: [id, name]
    description: "Customer country"

  - api_name: product
    key_field: sku
    fields: [sku, desc, category]
"""


@pytest.fixture
def definitions_dir(tmp_path: Path, sample_definitions_yaml: str) -> Path:
    defs_path = tmp_path / "definitions"
    defs_path.mkdir()
    (defs_path / "dimensions.yaml").write_text(sample_definitions_yaml)
    return defs_path


@pytest.fixture
def registry(definitions_dir: Path) -> DefinitionRegistry:
    reg = DefinitionRegistry()
    reg.load_directory(definitions_dir)
    return reg


SAMPLE_TRAFFIC_COLUMNS = [
    "dateTime TIMESTAMP",
    "country__id VARCHAR",
    "country__name VARCHAR",
    "clicks INTEGER",
    "spend DECIMAL(10, 2)",
]


@pytest.fixture
def sample_traffic_data() -> list[tuple]:
    return [
        ("2024-01-01 00:00:00", "US", "United States", 42, 10.50),
        ("2024-01-01 00:00:00", "UK", "United Kingdom", 7, 3.25),
        ("2024-01-02 00:00:00", "US", "United States", 13, 4.00),
    ]


@pytest.fixture
def db_with_data(sample_traffic_data: list[tuple]) -> Generator[DuckDBExecutor, None, None]:
    """In-memory DuckDB executor with a traffic table."""
    executor = DuckDBExecutor()
    executor.create_table_from_data("traffic", SAMPLE_TRAFFIC_COLUMNS, sample_traffic_data)
    yield executor
    executor.close()


@pytest.fixture
def db_file(tmp_path: Path, sample_traffic_data: list[tuple]) -> str:
    """DuckDB file with a traffic table, for the CLI."""
    path = str(tmp_path / "traffic.duckdb")
    with DuckDBExecutor(path) as executor:
        executor.create_table_from_data("traffic", SAMPLE_TRAFFIC_COLUMNS, sample_traffic_data)
    return path


@pytest.fixture
def parquet_file(tmp_path: Path, db_with_data: DuckDBExecutor) -> Path:
    """The traffic table exported to parquet."""
    path = tmp_path / "traffic.parquet"
    db_with_data.conn.execute(f"COPY traffic TO '{path}' (FORMAT PARQUET)")
    return path
