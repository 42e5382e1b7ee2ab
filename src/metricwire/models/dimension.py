"""Pydantic models for dimensions and result columns.

dimensions are the categorical axes of a result - a key field that identifies
a row plus any number of descriptive fields. these models end up as dict keys
all over the response code so they're frozen (and therefore hashable).
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DimensionField(BaseModel):
    """A single field (column) of a dimension, e.g. ``id`` or ``name``."""

    model_config = ConfigDict(frozen=True)

    name: str


class Dimension(BaseModel):
    """A dimension with a distinguished key field.

    fields is a tuple rather than a list because frozen models hash their
    field values and lists aren't hashable.
    """

    model_config = ConfigDict(frozen=True)

    api_name: str
    key_field: str
    fields: tuple[DimensionField, ...] = Field(default_factory=tuple)
    description: str | None = None

    @model_validator(mode="before")
    @classmethod
    def coerce_fields(cls, data: Any) -> Any:
        """Accept plain field names and make sure the key field is declared.

        yaml definitions list fields as bare strings, so normalise those here
        instead of making every caller build DimensionField objects.
        """
        if not isinstance(data, dict):
            return data
        data = dict(data)
        fields = [
            DimensionField(name=f) if isinstance(f, str) else f
            for f in data.get("fields") or ()
        ]
        key_name = data.get("key_field")
        if key_name is not None and not any(
            (f.name if isinstance(f, DimensionField) else f.get("name")) == key_name
            for f in fields
        ):
            # key always comes first when the definition forgot to list it
            fields.insert(0, DimensionField(name=key_name))
        data["fields"] = tuple(fields)
        return data

    @property
    def key(self) -> DimensionField:
        """The key field of this dimension."""
        return DimensionField(name=self.key_field)

    def get_field(self, name: str) -> DimensionField | None:
        """Get a field by name."""
        for field in self.fields:
            if field.name == name:
                return field
        return None


class DimensionColumn(BaseModel):
    """A result-set column holding rows of one dimension."""

    model_config = ConfigDict(frozen=True)

    dimension: Dimension

    @property
    def name(self) -> str:
        return self.dimension.api_name


class MetricColumn(BaseModel):
    """A result-set column holding metric values."""

    model_config = ConfigDict(frozen=True)

    name: str
