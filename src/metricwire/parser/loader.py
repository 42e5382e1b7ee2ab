"""YAML loader and registry for dimension definitions.

the registry holds the dimensions a deployment knows about plus its response
settings. yaml for the same reasons as everywhere else in this kind of tool:
readable, diffable, and comments are allowed.
"""

from pathlib import Path
from typing import Any

import yaml

from metricwire.models.dimension import Dimension, DimensionField
from metricwire.models.settings import ResponseSettings


class DefinitionRegistry:
    """Registry of dimension definitions and response settings."""

    def __init__(self) -> None:
        self.dimensions: dict[str, Dimension] = {}
        self.settings = ResponseSettings()
        self._settings_source: Path | None = None

    def load_directory(self, path: Path) -> None:
        """Load all YAML files from a directory (recursively)."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Definitions directory not found: {path}")

        # sorted so settings conflicts are reported the same way every run
        yaml_files = sorted(list(path.glob("**/*.yaml")) + list(path.glob("**/*.yml")))
        if not yaml_files:
            raise ValueError(f"No YAML files found in {path}")

        for yaml_file in yaml_files:
            self.load_file(yaml_file)

    def load_file(self, path: Path) -> None:
        """Parse a single YAML file.

        a file can hold a settings block, dimensions, or both. only one file
        may define settings. empty files are ignored.
        """
        with open(path) as f:
            data = yaml.safe_load(f)

        if data is None:
            return

        settings_data = data.get("settings")
        if settings_data is not None:
            if self._settings_source is not None:
                raise ValueError(
                    f"Settings defined in both '{self._settings_source}' and '{path}'"
                )
            self.settings = ResponseSettings.model_validate(settings_data)
            self._settings_source = Path(path)

        for dim_data in data.get("dimensions", []):
            self.add_dimension(Dimension.model_validate(dim_data))

    def add_dimension(self, dimension: Dimension) -> None:
        if dimension.api_name in self.dimensions:
            raise ValueError(f"Duplicate dimension: {dimension.api_name}")
        self.dimensions[dimension.api_name] = dimension

    def get_dimension(self, name: str) -> Dimension:
        """Get a dimension by api name."""
        if name not in self.dimensions:
            raise KeyError(f"Unknown dimension: {name}")
        return self.dimensions[name]

    def get_dimension_field(self, dimension_name: str, field_name: str) -> DimensionField:
        """Get a field of a dimension, raising KeyError if it isn't declared."""
        dimension = self.get_dimension(dimension_name)
        dimension_field = dimension.get_field(field_name)
        if dimension_field is None:
            raise KeyError(f"Unknown field '{field_name}' for dimension '{dimension_name}'")
        return dimension_field

    def parse_dimension_fields(self, spec: str | None) -> dict[Dimension, list[DimensionField]]:
        """Parse a requested-fields string like ``country:id,name;product``.

        dimensions are separated by ``;``, fields follow a ``:``. a dimension
        without fields is requested key-only. ``all`` expands to every field.
        """
        requested: dict[Dimension, list[DimensionField]] = {}
        if not spec:
            return requested

        for part in spec.split(";"):
            part = part.strip()
            if not part:
                continue
            name, _, fields_part = part.partition(":")
            dimension = self.get_dimension(name.strip())
            field_names = [f.strip() for f in fields_part.split(",") if f.strip()]
            if field_names == ["all"]:
                requested[dimension] = list(dimension.fields)
            else:
                requested[dimension] = [
                    self.get_dimension_field(dimension.api_name, f) for f in field_names
                ]
        return requested

    def describe(self) -> list[dict[str, Any]]:
        """Summaries of every dimension, for listing."""
        return [
            {
                "name": d.api_name,
                "key": d.key_field,
                "fields": [f.name for f in d.fields],
                "description": d.description,
            }
            for d in self.dimensions.values()
        ]
