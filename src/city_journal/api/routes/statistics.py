"""Statistics routes.

## Endpoint

GET /api/statistics?startDate=2024-03-01&endDate=2024-03-31&keywords=meeting,museum

```json
{
  "cityDurations": {"tokyo": 2, "kyoto": 1},
  "keywordCounts": {"meeting": 2, "museum": 0}
}
```

``keywordCounts`` is omitted when no non-blank keywords were given.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from city_journal.auth.dependencies import get_current_user_id
from city_journal.calendar.store import EventStore
from city_journal.database.connection import get_db_session
from city_journal.statistics.aggregator import (
    StatisticsAggregator,
    parse_keywords,
    validate_range,
)

router = APIRouter()


class StatisticsResponse(BaseModel):
    """Statistics over a date range."""

    model_config = ConfigDict(populate_by_name=True)

    city_durations: dict[str, int] = Field(..., alias="cityDurations")
    keyword_counts: dict[str, int] | None = Field(default=None, alias="keywordCounts")


@router.get(
    "",
    response_model=StatisticsResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def get_statistics(
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    keywords: str | None = Query(default=None),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> StatisticsResponse:
    """Days per city and keyword counts between two dates, inclusive."""
    # Report bad ranges before touching storage
    validate_range(start_date, end_date)

    aggregator = StatisticsAggregator(EventStore(db))
    result = await aggregator.compute_statistics(
        user_id, start_date, end_date, parse_keywords(keywords)
    )

    return StatisticsResponse(
        city_durations=result.city_durations,
        keyword_counts=result.keyword_counts,
    )
