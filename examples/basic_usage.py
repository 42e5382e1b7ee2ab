"""Basic usage example for MetricWire."""

import sys
from datetime import datetime
from pathlib import Path

# Add parent to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from metricwire import Dimension, DimensionField, Interval, Pagination, ResponseData
from metricwire.executor.duckdb_executor import DuckDBExecutor


def main():
    """Render the same query result in all three formats."""
    country = Dimension(api_name="country", key_field="id", fields=["id", "name"])
    product = Dimension(api_name="product", key_field="sku", fields=["sku", "desc"])

    executor = DuckDBExecutor()
    executor.create_table_from_data(
        "traffic",
        [
            "dateTime TIMESTAMP",
            "country__id VARCHAR",
            "country__name VARCHAR",
            "product__sku VARCHAR",
            "product__desc VARCHAR",
            "clicks INTEGER",
            "spend DECIMAL(10, 2)",
        ],
        [
            ("2024-01-01", "US", "United States", "A1", "Anvil", 42, 10.50),
            ("2024-01-01", "UK", "United Kingdom", "A1", "Anvil", 7, 3.25),
            ("2024-01-02", "US", "United States", "B2", "Bucket", 13, 4.00),
        ],
    )

    sql = "SELECT * FROM traffic ORDER BY dateTime, country__id"

    print("=" * 60, flush=True)
    print("MetricWire Response Formats Demo")
    print("=" * 60, flush=True)

    # 1. flat json with the country name inline
    print("\n1. JSON:", flush=True)
    result_set = executor.execute_result_set(sql, [country, product])
    response = ResponseData(
        result_set,
        ["clicks", "spend"],
        {country: [DimensionField(name="name")], product: []},
        response_format="json",
    )
    response.write(sys.stdout.buffer)
    sys.stdout.buffer.write(b"\n")

    # 2. jsonapi - dimension details move to sidecars, plus a meta block
    print("\n2. JSON-API with meta:", flush=True)
    result_set = executor.execute_result_set(sql, [country, product])
    response = ResponseData(
        result_set,
        ["clicks"],
        {country: [DimensionField(name="name")], product: [DimensionField(name="desc")]},
        response_format="jsonapi",
        volatile_intervals=[Interval(start=datetime(2024, 1, 2), end=datetime(2024, 1, 3))],
        pagination=Pagination(
            page=1,
            per_page=3,
            num_results=3,
            links={"first": "/data?page=1", "last": "/data?page=1"},
        ),
    )
    response.write(sys.stdout.buffer)
    sys.stdout.buffer.write(b"\n")

    # 3. csv
    print("\n3. CSV:", flush=True)
    result_set = executor.execute_result_set(sql, [country, product])
    response = ResponseData(
        result_set,
        ["clicks", "spend"],
        {country: [], product: [DimensionField(name="desc")]},
        response_format="csv",
    )
    response.write(sys.stdout.buffer)
    sys.stdout.buffer.flush()

    executor.close()


if __name__ == "__main__":
    main()
