"""Incremental JSON document writer.

the stdlib json module only does whole documents, which would mean holding
every row of a response in memory before writing anything. this writes one
token at a time straight to a binary sink instead - containers are opened and
closed explicitly and values in between are serialized with json.dumps.
output is compact (no whitespace) utf-8.
"""

import json
import math
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, BinaryIO


def _non_finite_name(value: float | Decimal) -> str:
    # same spelling jackson uses when it quotes non-numeric numbers
    if value.is_nan() if isinstance(value, Decimal) else math.isnan(value):
        return "NaN"
    return "-Infinity" if value < 0 else "Infinity"


def _json_default(value: Any) -> Any:
    """Fallback serializer for types json doesn't know about.

    duckdb hands back Decimal for DECIMAL columns and those are numbers to
    the client, not strings.
    """
    if isinstance(value, Decimal):
        if not value.is_finite():
            return _non_finite_name(value)
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _quote_non_finite(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return _non_finite_name(value)
    if isinstance(value, dict):
        return {k: _quote_non_finite(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_quote_non_finite(v) for v in value]
    return value


def _dumps(value: Any) -> str:
    return json.dumps(
        value,
        default=_json_default,
        ensure_ascii=False,
        separators=(",", ":"),
        allow_nan=False,
    )


def dumps(value: Any) -> str:
    """Compact json for one value.

    NaN and infinities aren't valid json, so they come out as the strings
    ``"NaN"``, ``"Infinity"`` and ``"-Infinity"`` instead of bare tokens.
    """
    try:
        return _dumps(value)
    except ValueError:
        # only rows that actually hold a non-finite float pay for the copy
        return _dumps(_quote_non_finite(value))


class JsonStreamWriter:
    """Writes a JSON document to a binary sink token by token.

    tracks the open containers so commas land in the right places. fields
    inside objects need a name, elements of arrays must not have one.
    """

    def __init__(self, sink: BinaryIO) -> None:
        self._sink = sink
        # one [is_object, element_count] pair per open container
        self._stack: list[list[Any]] = []

    def start_object(self, name: str | None = None) -> None:
        self._prefix(name)
        self._write("{")
        self._stack.append([True, 0])

    def end_object(self) -> None:
        self._close(is_object=True)
        self._write("}")

    def start_array(self, name: str | None = None) -> None:
        self._prefix(name)
        self._write("[")
        self._stack.append([False, 0])

    def end_array(self) -> None:
        self._close(is_object=False)
        self._write("]")

    def write_value(self, value: Any) -> None:
        """Write an array element (or a whole top-level value)."""
        self._write_token(None, value)

    def write_field(self, name: str, value: Any) -> None:
        """Write a named member of the current object."""
        self._write_token(name, value)

    def flush(self) -> None:
        flush = getattr(self._sink, "flush", None)
        if flush is not None:
            flush()

    @property
    def depth(self) -> int:
        return len(self._stack)

    def _write_token(self, name: str | None, value: Any) -> None:
        # serialize before touching the sink so a bad value doesn't leave a
        # dangling field name behind
        encoded = dumps(value)
        self._prefix(name)
        self._write(encoded)

    def _prefix(self, name: str | None) -> None:
        if not self._stack:
            if name is not None:
                raise ValueError("Top-level value can't have a field name")
            return
        container = self._stack[-1]
        is_object, count = container
        if is_object and name is None:
            raise ValueError("Object members need a field name")
        if not is_object and name is not None:
            raise ValueError(f"Array elements can't have a field name: {name}")
        parts = "," if count else ""
        if is_object:
            parts += dumps(name) + ":"
        if parts:
            self._write(parts)
        container[1] = count + 1

    def _close(self, is_object: bool) -> None:
        if not self._stack or self._stack[-1][0] is not is_object:
            kind = "object" if is_object else "array"
            raise ValueError(f"No open {kind} to close")
        self._stack.pop()

    def _write(self, text: str) -> None:
        self._sink.write(text.encode("utf-8"))
