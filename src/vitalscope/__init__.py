"""VitalScope - personalized product health scanning."""

__version__ = "0.1.0"
