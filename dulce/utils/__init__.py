"""Utility modules for the Estacion Dulce resource server."""

from .config import Settings, get_settings
from .dates import to_datetime, to_iso_date, to_iso_string, format_http_date

__all__ = [
    "Settings",
    "get_settings",
    # Dates
    "to_datetime",
    "to_iso_date",
    "to_iso_string",
    "format_http_date",
]
