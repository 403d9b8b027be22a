"""Utility functions and helpers."""

from ordering.utils.datetime_utils import to_iso_timestamp, utc_now

__all__ = [
    "to_iso_timestamp",
    "utc_now",
]
