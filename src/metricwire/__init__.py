"""MetricWire - streaming json, jsonapi and csv responses for metric query results."""

from metricwire.models import (
    DataRequest,
    Dimension,
    DimensionColumn,
    DimensionField,
    DimensionRow,
    Interval,
    MetricColumn,
    Pagination,
    ResponseFormatType,
    ResponseSettings,
    Result,
    ResultSet,
    ResultSetSchema,
)
from metricwire.naming import DimensionColumnNameCache, get_default_name_cache
from metricwire.response import ResponseData, ResponseWriterSelector

__all__ = [
    "DataRequest",
    "Dimension",
    "DimensionColumn",
    "DimensionColumnNameCache",
    "DimensionField",
    "DimensionRow",
    "Interval",
    "MetricColumn",
    "Pagination",
    "ResponseData",
    "ResponseFormatType",
    "ResponseSettings",
    "ResponseWriterSelector",
    "Result",
    "ResultSet",
    "ResultSetSchema",
    "get_default_name_cache",
]
