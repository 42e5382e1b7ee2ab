"""Pydantic models for MetricWire."""

from metricwire.models.dimension import Dimension, DimensionColumn, DimensionField, MetricColumn
from metricwire.models.request import DataRequest, Interval, Pagination, ResponseFormatType
from metricwire.models.result import DimensionRow, Result, ResultSet, ResultSetSchema
from metricwire.models.settings import ResponseSettings

__all__ = [
    "DataRequest",
    "Dimension",
    "DimensionColumn",
    "DimensionField",
    "DimensionRow",
    "Interval",
    "MetricColumn",
    "Pagination",
    "ResponseFormatType",
    "ResponseSettings",
    "Result",
    "ResultSet",
    "ResultSetSchema",
]
