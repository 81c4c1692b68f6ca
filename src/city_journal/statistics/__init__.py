"""Date-range statistics over a user's calendar."""

from city_journal.statistics.aggregator import (
    StatisticsAggregator,
    StatisticsResult,
    aggregate,
    parse_keywords,
    validate_range,
)

__all__ = [
    "StatisticsAggregator",
    "StatisticsResult",
    "aggregate",
    "parse_keywords",
    "validate_range",
]
