"""Utility functions and helpers."""

from .logging import setup_logging, get_logger
from .helpers import format_money, format_time, percent_label, clamp, to_finite, slugify

__all__ = [
    "setup_logging",
    "get_logger",
    "format_money",
    "format_time",
    "percent_label",
    "clamp",
    "to_finite",
    "slugify",
]
