"""
Utilities package for trustmap.

Exports shared helpers for logging and timestamp handling.
Keep this package lightweight and free of directory-specific logic.
"""

from trustmap.utils.logging import configure_logging, get_logger
from trustmap.utils.timefmt import format_timestamp, parse_generalized_time

__all__ = [
    "configure_logging",
    "get_logger",
    "format_timestamp",
    "parse_generalized_time",
]
