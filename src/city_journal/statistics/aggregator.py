"""Date-range statistics over a user's calendar.

Two tallies are produced for the days whose date-key falls inside an
inclusive ``[start_date, end_date]`` range:

- **City durations**: for each normalized city name (trimmed, lowercased),
  the number of distinct days it appears on. Two records for "Paris" and
  " paris " on the same day count as one day.
- **Keyword counts**: for each requested keyword, the number of activities
  whose description contains it, case-insensitively. There is no
  de-duplication here; two matching activities on one day count twice, and
  one activity can match several keywords.

The range filter compares date-key strings directly. That is exact because
date-keys are zero-padded ``YYYY-MM-DD``.

## Stored data

Calendars are client-supplied JSON, so the scan reads the raw document and
skips anything that does not have the expected shape: a non-object
``events`` yields an empty result, and malformed days, city records or
activities are ignored individually.

## Example

```python
aggregator = StatisticsAggregator(EventStore(session))
result = await aggregator.compute_statistics(
    user_id, "2024-03-01", "2024-03-31", parse_keywords("meeting, museum")
)
result.to_response()
# {"cityDurations": {"tokyo": 2}, "keywordCounts": {"meeting": 2, "museum": 0}}
```
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from city_journal.errors import InvalidRange, MalformedDocument, Unauthorized
from city_journal.models.calendar import is_date_key, normalize_city

logger = logging.getLogger(__name__)


class DocumentSource(Protocol):
    """Anything that can load a user's raw calendar document."""

    async def get_document(self, user_id: str) -> Mapping[str, Any] | None: ...


@dataclass
class StatisticsResult:
    """Aggregated statistics for one date range.

    ``keyword_counts`` is None when no keywords were requested, so that the
    response can omit the key entirely.
    """

    city_durations: dict[str, int]
    keyword_counts: dict[str, int] | None = None

    def to_response(self) -> dict[str, Any]:
        response: dict[str, Any] = {"cityDurations": self.city_durations}
        if self.keyword_counts is not None:
            response["keywordCounts"] = self.keyword_counts
        return response


def parse_keywords(raw: str | Iterable[str] | None) -> list[str]:
    """Normalize requested keywords.

    Accepts the comma-separated query string form or an iterable of strings.
    Keywords are trimmed, blanks are dropped, and duplicates collapse to the
    first occurrence. Original casing is kept since it is used as the
    result key.
    """
    if raw is None:
        return []
    parts = raw.split(",") if isinstance(raw, str) else raw

    keywords: list[str] = []
    for part in parts:
        keyword = part.strip()
        if keyword and keyword not in keywords:
            keywords.append(keyword)
    return keywords


def validate_range(start_date: str | None, end_date: str | None) -> None:
    """Check that both dates are date-keys and the range is not inverted.

    Raises:
        InvalidRange: On a missing or malformed date, or start after end
    """
    if not start_date or not end_date:
        raise InvalidRange("Missing startDate or endDate parameters")
    if not is_date_key(start_date) or not is_date_key(end_date):
        raise InvalidRange("Invalid date format. Use YYYY-MM-DD.")
    if start_date > end_date:
        raise InvalidRange("Start date cannot be after end date")


class StatisticsAggregator:
    """Computes city and keyword statistics from a document source.

    The aggregator is read-only and holds no per-call state, so one instance
    can serve concurrent requests.
    """

    def __init__(self, store: DocumentSource):
        self.store = store

    async def compute_statistics(
        self,
        user_id: str | None,
        start_date: str,
        end_date: str,
        keywords: Iterable[str] | None = None,
    ) -> StatisticsResult:
        """Compute statistics for ``user_id`` over ``[start_date, end_date]``.

        Args:
            user_id: Id of the authenticated caller
            start_date: Inclusive lower bound, ``YYYY-MM-DD``
            end_date: Inclusive upper bound, ``YYYY-MM-DD``
            keywords: Keywords to count in activity descriptions

        Returns:
            StatisticsResult with per-city day counts and, when keywords were
            requested, per-keyword activity counts

        Raises:
            Unauthorized: If ``user_id`` is empty
            InvalidRange: On malformed dates or an inverted range
            StorageFailure: If the document cannot be read
        """
        if not user_id:
            raise Unauthorized()
        validate_range(start_date, end_date)
        wanted = parse_keywords(keywords)

        document = await self.store.get_document(user_id)
        try:
            events = _events_of(document)
        except MalformedDocument:
            logger.warning(f"Calendar for user {user_id} is malformed; returning empty statistics")
            events = {}

        if not events:
            logger.info(f"No events for user {user_id}; returning empty statistics")

        result = aggregate(events, start_date, end_date, wanted)
        logger.info(
            f"Statistics for user {user_id} {start_date}..{end_date}: "
            f"{len(result.city_durations)} cities, {len(wanted)} keywords"
        )
        return result


def aggregate(
    events: Mapping[str, Any],
    start_date: str,
    end_date: str,
    keywords: list[str],
) -> StatisticsResult:
    """Tally an already-loaded ``events`` mapping.

    ``keywords`` must already be normalized (see ``parse_keywords``).
    """
    city_durations: dict[str, int] = {}
    keyword_counts = {keyword: 0 for keyword in keywords}
    lowered = [(keyword, keyword.lower()) for keyword in keywords]

    for date_key, day in events.items():
        if not (is_date_key(date_key) and start_date <= date_key <= end_date):
            continue
        city_records = _city_records_of(day)

        cities_today = {
            normalize_city(record["city"])
            for record in city_records
            if isinstance(record.get("city"), str) and record["city"].strip()
        }
        for city in cities_today:
            city_durations[city] = city_durations.get(city, 0) + 1

        if not lowered:
            continue
        for description in _descriptions_of(city_records):
            text = description.lower()
            for keyword, needle in lowered:
                if needle in text:
                    keyword_counts[keyword] += 1

    return StatisticsResult(
        city_durations=city_durations,
        keyword_counts=keyword_counts if keywords else None,
    )


def _events_of(document: Mapping[str, Any] | None) -> Mapping[str, Any]:
    if document is None:
        return {}
    events = document.get("events")
    if events is None:
        return {}
    if not isinstance(events, Mapping):
        raise MalformedDocument()
    return events


def _city_records_of(day: Any) -> list[Mapping[str, Any]]:
    if not isinstance(day, Mapping):
        return []
    records = day.get("cityRecords")
    if not isinstance(records, list):
        return []
    return [record for record in records if isinstance(record, Mapping)]


def _descriptions_of(city_records: list[Mapping[str, Any]]) -> Iterator[str]:
    for record in city_records:
        activities = record.get("activities")
        if not isinstance(activities, list):
            continue
        for activity in activities:
            if isinstance(activity, Mapping) and isinstance(activity.get("description"), str):
                yield activity["description"]
