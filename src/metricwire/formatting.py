"""Timestamp and interval formatting.

strftime has no millisecond directive (only %f microseconds), and the default
output format wants exactly three digits, so %L is handled here before handing
the pattern to strftime.
"""

import re
from datetime import datetime

from metricwire.models.request import Interval

# %% is matched too so an escaped percent never gets read as the start of %L
_MILLIS_TOKEN = re.compile(r"%[%L]")


def format_datetime(value: datetime, pattern: str) -> str:
    """Render a timestamp with a strftime pattern that may contain %L."""
    if "%L" in pattern:
        millis = f"{value.microsecond // 1000:03d}"
        pattern = _MILLIS_TOKEN.sub(lambda m: millis if m.group() == "%L" else "%%", pattern)
    return value.strftime(pattern)


def format_interval(interval: Interval, pattern: str, separator: str = "/") -> str:
    """Render an interval as ``<start><separator><end>``."""
    return f"{format_datetime(interval.start, pattern)}{separator}{format_datetime(interval.end, pattern)}"
