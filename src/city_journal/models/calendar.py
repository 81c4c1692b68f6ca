"""Calendar document models.

A user's journal is one document: a mapping from date-key (``YYYY-MM-DD``)
to a day record. The JSON shape mirrors what the browser client sends,
so field aliases are camelCase:

```json
{
  "2024-03-01": {
    "date": "2024-03-01",
    "cityRecords": [
      {
        "id": "5f0c...",
        "city": "Tokyo",
        "activities": [{"id": "9a1e...", "description": "team meeting"}],
        "weather": {"temperature": 18, "condition": "Sunny", "icon": "Sunny"}
      }
    ]
  }
}
```
"""

from __future__ import annotations

import re
import uuid
from datetime import date as date_type
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Zero-padded ASCII date-key; string order equals chronological order.
# Matched with fullmatch so a trailing newline is rejected.
DATE_KEY_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def is_date_key(value: Any) -> bool:
    """Check that a value is a well-formed ``YYYY-MM-DD`` date-key."""
    return isinstance(value, str) and DATE_KEY_PATTERN.fullmatch(value) is not None


def normalize_city(name: str) -> str:
    """Grouping key for a city name: surrounding whitespace removed, lowercased."""
    return name.strip().lower()


def new_record_id() -> str:
    return uuid.uuid4().hex


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class WeatherSnapshot(_CamelModel):
    """Weather captured when a city record was created. Never refreshed."""

    temperature: float
    condition: str
    icon: str | None = None


class Activity(_CamelModel):
    """A free-text note of something done in a city."""

    id: str = Field(default_factory=new_record_id)
    description: str


class CityRecord(_CamelModel):
    """A visit to one city on one day."""

    id: str = Field(default_factory=new_record_id)
    city: str = Field(..., min_length=1)
    activities: list[Activity] = Field(default_factory=list)
    weather: WeatherSnapshot | None = None

    @field_validator("city")
    @classmethod
    def city_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("City name must not be blank")
        return v

    def find_activity(self, activity_id: str) -> Activity | None:
        for activity in self.activities:
            if activity.id == activity_id:
                return activity
        return None


class DayRecord(_CamelModel):
    """All city records for one calendar day."""

    date: date_type
    city_records: list[CityRecord] = Field(default_factory=list, alias="cityRecords")

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        """Accept full ISO timestamps as sent by JavaScript ``Date`` objects."""
        if isinstance(v, str) and len(v) > 10 and v[10] == "T":
            return v[:10]
        return v

    @property
    def date_key(self) -> str:
        return self.date.isoformat()

    def find_city_record(self, record_id: str) -> CityRecord | None:
        for record in self.city_records:
            if record.id == record_id:
                return record
        return None


class CalendarDocument(_CamelModel):
    """The stored calendar of a single user."""

    user_id: str = Field(..., alias="userId")
    events: dict[str, DayRecord] = Field(default_factory=dict)

    @field_validator("events")
    @classmethod
    def validate_date_keys(cls, v: dict[str, DayRecord]) -> dict[str, DayRecord]:
        for key in v:
            if not is_date_key(key):
                raise ValueError(f"Invalid date key: '{key}'. Expected YYYY-MM-DD")
        return v

    @model_validator(mode="after")
    def validate_dates_match_keys(self) -> Self:
        """Each day's ``date`` must be the same calendar day as its key."""
        for key, day in self.events.items():
            if day.date_key != key:
                raise ValueError(
                    f"Day record date {day.date_key} does not match key {key}"
                )
        return self

    def events_json(self) -> dict[str, Any]:
        """Serialize ``events`` in the client (camelCase) shape."""
        return {
            key: day.model_dump(mode="json", by_alias=True)
            for key, day in self.events.items()
        }
