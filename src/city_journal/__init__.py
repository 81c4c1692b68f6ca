"""City journal: a per-day travel journal with weather and statistics."""

__version__ = "0.1.0"
