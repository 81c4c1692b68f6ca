"""Calendar document storage.

``EventStore`` is the only code that reads or writes ``calendar_documents``.
It works on one ``AsyncSession`` (one request) at a time.

## Empty days

Removing the last city record of a day deletes the day's key from
``events``. Removing the last activity of a city record keeps the (now
empty) city record. Whole-calendar saves store exactly what the client
sent, so readers still have to cope with days whose ``cityRecords`` is
empty.

## Errors

Any ``SQLAlchemyError`` is logged and re-raised as ``StorageFailure``.
Missing days, records and activities raise ``RecordNotFound``.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from city_journal.database.models import CalendarDocumentRow
from city_journal.errors import InvalidRange, MalformedDocument, RecordNotFound, StorageFailure
from city_journal.models.calendar import (
    Activity,
    CalendarDocument,
    CityRecord,
    DayRecord,
    is_date_key,
    new_record_id,
)

logger = logging.getLogger(__name__)


class EventStore:
    """Persists and retrieves a user's whole calendar document."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_row(self, user_id: str) -> CalendarDocumentRow | None:
        try:
            result = await self.session.execute(
                select(CalendarDocumentRow).where(CalendarDocumentRow.user_id == user_id)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Failed to read calendar for user {user_id}: {e}")
            raise StorageFailure() from e

    async def get_document(self, user_id: str) -> dict[str, Any] | None:
        """Return the stored document as raw JSON, or None if never saved.

        The result has the shape ``{"userId": ..., "events": ...}``; ``events``
        is returned exactly as stored and is not validated.
        """
        row = await self._get_row(user_id)
        if row is None:
            return None
        return {"userId": row.user_id, "events": row.events}

    async def get_events(self, user_id: str) -> dict[str, Any]:
        """Return the raw ``events`` mapping, or ``{}`` if there is none."""
        document = await self.get_document(user_id)
        if document is None or not isinstance(document["events"], dict):
            return {}
        return document["events"]

    async def load_calendar(self, user_id: str) -> CalendarDocument:
        """Load and validate the user's calendar; empty if never saved.

        Raises:
            MalformedDocument: If the stored events do not validate
        """
        document = await self.get_document(user_id)
        if document is None or document["events"] is None:
            return CalendarDocument(user_id=user_id)

        try:
            return CalendarDocument.model_validate(document)
        except ValueError as e:
            logger.error(f"Stored calendar for user {user_id} is malformed: {e}")
            raise MalformedDocument() from e

    async def save_calendar(self, calendar: CalendarDocument) -> None:
        """Replace the user's events, creating the document on first save."""
        events = calendar.events_json()
        try:
            row = await self._get_row(calendar.user_id)
            if row is None:
                row = CalendarDocumentRow(user_id=calendar.user_id, events=events)
                self.session.add(row)
            else:
                row.events = events
            await self.session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to save calendar for user {calendar.user_id}: {e}")
            await self.session.rollback()
            raise StorageFailure() from e

        logger.info(f"Saved calendar for user {calendar.user_id} ({len(events)} days)")

    async def save_events(self, user_id: str, events: dict[str, DayRecord]) -> None:
        await self.save_calendar(CalendarDocument(user_id=user_id, events=events))

    # Granular edits. Each one loads the validated calendar, edits it, and saves the whole
    # document; concurrent edits by the same user are last-write-wins.

    async def add_city_record(
        self, user_id: str, date_key: str, record: CityRecord
    ) -> CityRecord:
        """Append a city record to a day, creating the day if needed."""
        _require_date_key(date_key)
        calendar = await self.load_calendar(user_id)

        day = calendar.events.get(date_key)
        if day is None:
            day = DayRecord(date=date_key)
            calendar.events[date_key] = day

        if day.find_city_record(record.id) is not None:
            # Client-supplied id collision; issue a fresh one
            record = record.model_copy(update={"id": new_record_id()})
        day.city_records.append(record)

        await self.save_calendar(calendar)
        return record

    async def remove_city_record(self, user_id: str, date_key: str, record_id: str) -> None:
        """Remove a city record; the day is dropped once it has none left."""
        calendar = await self.load_calendar(user_id)
        day = _get_day(calendar, date_key)
        record = _get_city_record(day, record_id)

        day.city_records.remove(record)
        if not day.city_records:
            del calendar.events[date_key]

        await self.save_calendar(calendar)

    async def add_activity(
        self, user_id: str, date_key: str, record_id: str, activity: Activity
    ) -> Activity:
        calendar = await self.load_calendar(user_id)
        record = _get_city_record(_get_day(calendar, date_key), record_id)

        if record.find_activity(activity.id) is not None:
            activity = activity.model_copy(update={"id": new_record_id()})
        record.activities.append(activity)

        await self.save_calendar(calendar)
        return activity

    async def update_activity(
        self,
        user_id: str,
        date_key: str,
        record_id: str,
        activity_id: str,
        description: str,
    ) -> Activity:
        calendar = await self.load_calendar(user_id)
        record = _get_city_record(_get_day(calendar, date_key), record_id)
        activity = _get_activity(record, activity_id)

        activity.description = description

        await self.save_calendar(calendar)
        return activity

    async def remove_activity(
        self, user_id: str, date_key: str, record_id: str, activity_id: str
    ) -> None:
        calendar = await self.load_calendar(user_id)
        record = _get_city_record(_get_day(calendar, date_key), record_id)
        activity = _get_activity(record, activity_id)

        record.activities.remove(activity)

        await self.save_calendar(calendar)


def _require_date_key(date_key: str) -> None:
    if not is_date_key(date_key):
        raise InvalidRange(f"Invalid date '{date_key}'. Use YYYY-MM-DD.")


def _get_day(calendar: CalendarDocument, date_key: str) -> DayRecord:
    _require_date_key(date_key)
    day = calendar.events.get(date_key)
    if day is None:
        raise RecordNotFound(f"No entries for {date_key}")
    return day


def _get_city_record(day: DayRecord, record_id: str) -> CityRecord:
    record = day.find_city_record(record_id)
    if record is None:
        raise RecordNotFound("City record not found")
    return record


def _get_activity(record: CityRecord, activity_id: str) -> Activity:
    activity = record.find_activity(activity_id)
    if activity is None:
        raise RecordNotFound("Activity not found")
    return activity
