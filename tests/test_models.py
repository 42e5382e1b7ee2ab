"""Tests for Pydantic models and formatting helpers."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from metricwire.formatting import format_datetime, format_interval
from metricwire.models.dimension import Dimension, DimensionColumn, DimensionField, MetricColumn
from metricwire.models.request import DataRequest, Interval, Pagination, ResponseFormatType
from metricwire.models.result import DimensionRow, Result, ResultSet, ResultSetSchema
from metricwire.models.settings import ResponseSettings


class TestDimension:
    def test_fields_from_names(self):
        """Plain field names are turned into DimensionFields."""
        dim = Dimension(api_name="country", key_field="id", fields=["id", "name"])
        assert dim.fields == (DimensionField(name="id"), DimensionField(name="name"))

    def test_key_field_added_when_missing(self):
        """The key field is always declared, first if it wasn't listed."""
        dim = Dimension(api_name="country", key_field="id", fields=["name"])
        assert [f.name for f in dim.fields] == ["id", "name"]

    def test_key_property(self):
        dim = Dimension(api_name="country", key_field="id", fields=["id", "name"])
        assert dim.key == DimensionField(name="id")

    def test_get_field(self):
        dim = Dimension(api_name="country", key_field="id", fields=["id", "name"])
        assert dim.get_field("name") == DimensionField(name="name")
        assert dim.get_field("nope") is None

    def test_hashable_and_equal_by_value(self):
        """Dimensions and fields work as dict keys across instances."""
        a = Dimension(api_name="country", key_field="id", fields=["id", "name"])
        b = Dimension(api_name="country", key_field="id", fields=["id", "name"])
        assert a == b
        assert {a: 1}[b] == 1
        assert {DimensionField(name="id"): 1}[DimensionField(name="id")] == 1

    def test_frozen(self):
        dim = Dimension(api_name="country", key_field="id")
        with pytest.raises(ValidationError):
            dim.api_name = "other"

    def test_dimension_column_name(self):
        dim = Dimension(api_name="country", key_field="id")
        assert DimensionColumn(dimension=dim).name == "country"


class TestResult:
    def test_dimension_row_lookup(self, country: Dimension):
        row = DimensionRow.of(country, id="US", name="United States")
        assert row.get(DimensionField(name="name")) == "United States"
        assert row.key_value == "US"
        assert row.get(DimensionField(name="population")) is None

    def test_metric_value_missing_column(self):
        clicks = MetricColumn(name="clicks")
        result = Result(timestamp=datetime(2024, 1, 1), metric_values={clicks: 3})
        assert result.get_metric_value(clicks) == 3
        assert result.get_metric_value(MetricColumn(name="other")) is None
        assert result.get_metric_value(None) is None

    def test_schema_lookup(self, schema: ResultSetSchema):
        assert schema.get_metric_column("clicks") == MetricColumn(name="clicks")
        assert schema.get_metric_column("revenue") is None
        assert schema.get_dimension_column("country") is not None
        assert schema.get_dimension_column("nope") is None

    def test_result_set_keeps_order(self, schema: ResultSetSchema, sample_results: list[Result]):
        rs = ResultSet(schema, sample_results)
        assert list(rs) == sample_results
        # list-backed result sets can be read again
        assert list(rs) == sample_results

    def test_generator_result_set_is_single_pass(
        self, schema: ResultSetSchema, sample_results: list[Result]
    ):
        rs = ResultSet(schema, (r for r in sample_results))
        assert len(list(rs)) == 3
        assert list(rs) == []

    def test_close_before_iterating(self, schema: ResultSetSchema, sample_results: list[Result]):
        closed = []
        rs = ResultSet(schema, (r for r in sample_results), on_close=lambda: closed.append(True))
        rs.close()
        rs.close()
        assert closed == [True]
        assert list(rs) == []

    def test_close_keeps_list_results(self, schema: ResultSetSchema, sample_results: list[Result]):
        with ResultSet(schema, sample_results) as rs:
            pass
        assert list(rs) == sample_results


class TestRequestModels:
    def test_interval_order_validated(self):
        with pytest.raises(ValidationError):
            Interval(start=datetime(2024, 1, 2), end=datetime(2024, 1, 1))

    def test_pagination_defaults(self):
        pagination = Pagination(page=1, per_page=10, num_results=0)
        assert pagination.links == {}

    def test_pagination_rejects_page_zero(self):
        with pytest.raises(ValidationError):
            Pagination(page=0, per_page=10, num_results=5)

    def test_data_request_defaults(self):
        request = DataRequest()
        assert request.format is None
        assert request.metrics == []
        assert request.dimension_fields == {}

    def test_data_request_with_dimension_keys(self, country: Dimension):
        request = DataRequest(
            format=ResponseFormatType.CSV,
            metrics=["clicks"],
            dimension_fields={country: [DimensionField(name="name")]},
        )
        assert request.dimension_fields[country] == [DimensionField(name="name")]

    def test_settings_defaults(self):
        settings = ResponseSettings()
        assert settings.partial_data is True
        assert settings.output_datetime_format == "%Y-%m-%d %H:%M:%S.%L"


class TestFormatting:
    def test_format_datetime_millis(self):
        value = datetime(2024, 1, 2, 12, 30, 15, 123456)
        assert format_datetime(value, "%Y-%m-%d %H:%M:%S.%L") == "2024-01-02 12:30:15.123"

    def test_format_datetime_midnight(self):
        assert format_datetime(datetime(2024, 1, 1), "%Y-%m-%d %H:%M:%S.%L") == (
            "2024-01-01 00:00:00.000"
        )

    def test_format_datetime_plain_strftime(self):
        assert format_datetime(datetime(2024, 3, 5), "%Y/%m/%d") == "2024/03/05"

    def test_format_datetime_escaped_percent(self):
        value = datetime(2024, 1, 2, 12, 30, 15, 45000)
        assert format_datetime(value, "%%L %L") == "%L 045"
        assert format_datetime(value, "%H%%%L") == "12%045"

    def test_format_interval(self):
        interval = Interval(start=datetime(2024, 1, 1), end=datetime(2024, 1, 2))
        assert format_interval(interval, "%Y-%m-%d") == "2024-01-01/2024-01-02"
        assert format_interval(interval, "%Y-%m-%d", " -- ") == "2024-01-01 -- 2024-01-02"
