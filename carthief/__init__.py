"""Car Thief: mission lifecycle and modifier aggregation engine."""

__version__ = "0.4.0"
