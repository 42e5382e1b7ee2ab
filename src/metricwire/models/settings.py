"""Response settings.

the handful of knobs that are global to a deployment rather than per request.
loaded from the ``settings:`` block of the definitions yaml, or built directly.
"""

from pydantic import BaseModel


class ResponseSettings(BaseModel):
    """Global response settings."""

    # strftime pattern, plus %L for zero-padded milliseconds
    output_datetime_format: str = "%Y-%m-%d %H:%M:%S.%L"
    # feature switch for missing interval reporting in the meta block
    partial_data: bool = True
    interval_separator: str = "/"
