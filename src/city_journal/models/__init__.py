"""Domain models for the city journal."""

from city_journal.models.calendar import (
    Activity,
    CalendarDocument,
    CityRecord,
    DayRecord,
    WeatherSnapshot,
    is_date_key,
    normalize_city,
)

__all__ = [
    "Activity",
    "CalendarDocument",
    "CityRecord",
    "DayRecord",
    "WeatherSnapshot",
    "is_date_key",
    "normalize_city",
]
