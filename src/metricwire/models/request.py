"""Pydantic models for the request side of a response.

everything the response writers need to know about what the caller asked for
- format, metrics, dimension fields - plus the envelope metadata (intervals,
pagination) that gets computed upstream and handed to us.
"""

from datetime import datetime
from enum import Enum
from typing import Self

from pydantic import BaseModel, Field, model_validator

from metricwire.models.dimension import Dimension, DimensionField


class ResponseFormatType(str, Enum):
    """Supported output formats."""

    JSON = "json"
    JSONAPI = "jsonapi"
    CSV = "csv"


class Interval(BaseModel):
    """A half-open time interval [start, end)."""

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def check_order(self) -> Self:
        if self.end < self.start:
            raise ValueError(f"Interval end {self.end} is before start {self.start}")
        return self


class Pagination(BaseModel):
    """Pagination state for a paginated response.

    links are the named navigation uris (first, last, next, previous...) and
    keep their insertion order in the output.
    """

    page: int = Field(ge=1)
    per_page: int = Field(ge=1)
    num_results: int = Field(ge=0)
    links: dict[str, str] = Field(default_factory=dict)


class DataRequest(BaseModel):
    """What the caller asked to see.

    dimension_fields maps each requested dimension to the fields to show -
    an empty list means "just the key". format can be a ResponseFormatType
    or any custom key registered on the writer selector.
    """

    format: ResponseFormatType | str | None = None
    metrics: list[str] = Field(default_factory=list)
    dimension_fields: dict[Dimension, list[DimensionField]] = Field(default_factory=dict)
