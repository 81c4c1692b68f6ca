"""Current weather model returned by the weather lookup."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CurrentWeather(BaseModel):
    """Current conditions for a city, in the shape the client stores.

    ``icon`` carries the condition text; the client picks an icon from it.
    A ``CityRecord.weather`` snapshot is a copy of this taken at creation.
    """

    temperature: int = Field(..., description="Air temperature in °C, rounded")
    condition: str = Field(..., description="Provider condition text")
    icon: str = Field(..., description="Condition text used for icon selection")
