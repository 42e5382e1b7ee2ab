"""Display names for dimension field columns.

a requested dimension field shows up in flat output as ``<dimension>|<field>``.
the names get computed for every row of every response, so they're cached.

the cache is shared by every response in the process. it's a dict of dicts and
relies on dict.setdefault being atomic: two responses racing on the same
missing entry both compute the same string and one of them wins, which is fine
since the value only depends on the key. no locks, readers never wait.
"""

from metricwire.models.dimension import Dimension, DimensionField

SEPARATOR = "|"


class DimensionColumnNameCache:
    """Cache of (dimension, field) -> composite column name."""

    def __init__(self) -> None:
        self._names: dict[Dimension, dict[DimensionField, str]] = {}

    def name_for(self, dimension: Dimension, dimension_field: DimensionField) -> str:
        """Get the column name for a dimension field, computing it on first use."""
        names = self._names.get(dimension)
        if names is None:
            names = self._names.setdefault(dimension, {})
        name = names.get(dimension_field)
        if name is None:
            name = names.setdefault(
                dimension_field, f"{dimension.api_name}{SEPARATOR}{dimension_field.name}"
            )
        return name

    def clear(self) -> None:
        """Drop every cached name. only meant for tests."""
        self._names = {}

    def __len__(self) -> int:
        return sum(len(names) for names in self._names.values())


# created once at import and never torn down - dimension identity is stable
# for the life of the process
_default_cache = DimensionColumnNameCache()


def get_default_name_cache() -> DimensionColumnNameCache:
    """The process-wide name cache."""
    return _default_cache
