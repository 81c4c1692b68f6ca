"""Calendar routes.

The browser client keeps the whole calendar in memory and saves it back in
one request, so the main endpoints read and replace the full ``events``
mapping. Finer-grained endpoints edit a single city record or activity.

All endpoints act on the signed-in user's own calendar only.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, status
from pydantic import BaseModel, Field, ValidationError, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from city_journal.auth.dependencies import get_current_user_id
from city_journal.calendar.store import EventStore
from city_journal.database.connection import get_db_session
from city_journal.errors import InvalidRequest
from city_journal.models.calendar import (
    Activity,
    CalendarDocument,
    CityRecord,
    WeatherSnapshot,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class CityRecordCreate(BaseModel):
    """Add a city to a day."""

    city: str = Field(..., min_length=1, max_length=200)
    activities: list[str] = Field(default_factory=list)
    weather: WeatherSnapshot | None = None

    @field_validator("city")
    @classmethod
    def strip_city(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("City name must not be blank")
        return v


class ActivityCreate(BaseModel):
    """Add or edit an activity."""

    description: str = Field(..., min_length=1, max_length=2000)


class MessageResponse(BaseModel):
    message: str


def get_event_store(db: AsyncSession = Depends(get_db_session)) -> EventStore:
    return EventStore(db)


@router.get("")
async def get_calendar(
    user_id: str = Depends(get_current_user_id),
    store: EventStore = Depends(get_event_store),
) -> dict[str, Any]:
    """Return the caller's events mapping, or ``{}`` if nothing is saved yet."""
    return await store.get_events(user_id)


@router.post("", response_model=MessageResponse)
async def save_calendar(
    events: Any = Body(...),
    user_id: str = Depends(get_current_user_id),
    store: EventStore = Depends(get_event_store),
) -> MessageResponse:
    """Replace the caller's whole events mapping."""
    if not isinstance(events, dict):
        raise InvalidRequest("Invalid request body")

    try:
        calendar = CalendarDocument(user_id=user_id, events=events)
    except ValidationError as e:
        logger.info(f"Rejected calendar save for user {user_id}: {e.error_count()} errors")
        raise InvalidRequest("Invalid calendar data") from e

    await store.save_calendar(calendar)
    return MessageResponse(message="Calendar data saved successfully")


@router.post(
    "/{date_key}/cities",
    response_model=CityRecord,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
async def add_city_record(
    date_key: str,
    data: CityRecordCreate,
    user_id: str = Depends(get_current_user_id),
    store: EventStore = Depends(get_event_store),
) -> CityRecord:
    """Record a city visit on a day, creating the day if needed."""
    record = CityRecord(
        city=data.city,
        activities=[Activity(description=d) for d in data.activities if d.strip()],
        weather=data.weather,
    )
    return await store.add_city_record(user_id, date_key, record)


@router.delete("/{date_key}/cities/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_city_record(
    date_key: str,
    record_id: str,
    user_id: str = Depends(get_current_user_id),
    store: EventStore = Depends(get_event_store),
) -> None:
    """Remove a city record. A day left with no records is removed too."""
    await store.remove_city_record(user_id, date_key, record_id)


@router.post(
    "/{date_key}/cities/{record_id}/activities",
    response_model=Activity,
    status_code=status.HTTP_201_CREATED,
)
async def add_activity(
    date_key: str,
    record_id: str,
    data: ActivityCreate,
    user_id: str = Depends(get_current_user_id),
    store: EventStore = Depends(get_event_store),
) -> Activity:
    return await store.add_activity(
        user_id, date_key, record_id, Activity(description=data.description)
    )


@router.patch(
    "/{date_key}/cities/{record_id}/activities/{activity_id}",
    response_model=Activity,
)
async def update_activity(
    date_key: str,
    record_id: str,
    activity_id: str,
    data: ActivityCreate,
    user_id: str = Depends(get_current_user_id),
    store: EventStore = Depends(get_event_store),
) -> Activity:
    return await store.update_activity(
        user_id, date_key, record_id, activity_id, data.description
    )


@router.delete(
    "/{date_key}/cities/{record_id}/activities/{activity_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_activity(
    date_key: str,
    record_id: str,
    activity_id: str,
    user_id: str = Depends(get_current_user_id),
    store: EventStore = Depends(get_event_store),
) -> None:
    await store.remove_activity(user_id, date_key, record_id, activity_id)
