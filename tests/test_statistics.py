"""Tests for the statistics aggregator."""

from typing import Any

import pytest

from city_journal.errors import InvalidRange, StorageFailure, Unauthorized
from city_journal.statistics.aggregator import (
    StatisticsAggregator,
    StatisticsResult,
    aggregate,
    parse_keywords,
    validate_range,
)


class FakeStore:
    """In-memory document source that records every lookup."""

    def __init__(self, documents: dict[str, Any] | None = None, error: Exception | None = None):
        self.documents = documents or {}
        self.error = error
        self.calls: list[str] = []

    async def get_document(self, user_id: str):
        self.calls.append(user_id)
        if self.error:
            raise self.error
        return self.documents.get(user_id)


def store_with(events: Any, user_id: str = "u1") -> FakeStore:
    return FakeStore({user_id: {"userId": user_id, "events": events}})


class TestParseKeywords:
    """Tests for keyword normalization."""

    def test_comma_separated(self):
        assert parse_keywords("meeting,museum") == ["meeting", "museum"]

    def test_trims_and_drops_blanks(self):
        assert parse_keywords(" meeting , ,  museum ,") == ["meeting", "museum"]

    def test_only_blanks(self):
        assert parse_keywords(" , ,") == []

    def test_none_and_empty(self):
        assert parse_keywords(None) == []
        assert parse_keywords("") == []

    def test_keeps_original_casing(self):
        assert parse_keywords("Meeting") == ["Meeting"]

    def test_duplicates_collapse(self):
        assert parse_keywords("meeting,meeting, meeting") == ["meeting"]

    def test_accepts_list(self):
        assert parse_keywords(["  museum", "", "lunch "]) == ["museum", "lunch"]


class TestValidateRange:
    """Tests for date range validation."""

    def test_valid_range(self):
        validate_range("2024-01-01", "2024-12-31")

    def test_same_day(self):
        validate_range("2024-03-01", "2024-03-01")

    def test_inverted_range(self):
        with pytest.raises(InvalidRange, match="after end date"):
            validate_range("2024-03-02", "2024-03-01")

    @pytest.mark.parametrize(
        "start,end",
        [
            ("2024-3-01", "2024-03-02"),
            ("2024-03-01", "20240302"),
            ("03/01/2024", "2024-03-02"),
            ("2024-03-01 ", "2024-03-02"),
            ("2024-03-01\n", "2024-03-02"),
            ("2024-03-01", "2024-03-02\n"),
            ("２０２４-03-01", "2024-03-02"),
            ("٢٠٢٤-03-01", "2024-03-02"),
        ],
    )
    def test_malformed_dates(self, start: str, end: str):
        with pytest.raises(InvalidRange, match="YYYY-MM-DD"):
            validate_range(start, end)

    def test_missing_dates(self):
        with pytest.raises(InvalidRange, match="Missing"):
            validate_range(None, "2024-03-02")
        with pytest.raises(InvalidRange, match="Missing"):
            validate_range("2024-03-01", "")


class TestAggregate:
    """Tests for the in-memory tally."""

    def test_tokyo_scenario(self, tokyo_events):
        result = aggregate(tokyo_events, "2024-03-01", "2024-03-02", ["meeting"])
        assert result.city_durations == {"tokyo": 2}
        assert result.keyword_counts == {"meeting": 2}

    def test_city_counted_once_per_day(self):
        events = {
            "2024-05-01": {
                "cityRecords": [
                    {"city": " Paris ", "activities": []},
                    {"city": "paris", "activities": []},
                    {"city": "PARIS", "activities": []},
                ]
            }
        }
        result = aggregate(events, "2024-05-01", "2024-05-01", [])
        assert result.city_durations == {"paris": 1}

    def test_keyword_counted_per_activity(self):
        events = {
            "2024-05-01": {
                "cityRecords": [
                    {
                        "city": "Paris",
                        "activities": [
                            {"description": "morning meeting"},
                            {"description": "another MEETING"},
                        ],
                    }
                ]
            }
        }
        result = aggregate(events, "2024-05-01", "2024-05-01", ["meeting"])
        assert result.keyword_counts == {"meeting": 2}

    def test_one_activity_matches_several_keywords(self):
        events = {
            "2024-05-01": {
                "cityRecords": [
                    {"city": "Lyon", "activities": [{"description": "Lunch meeting at the museum"}]}
                ]
            }
        }
        result = aggregate(events, "2024-05-01", "2024-05-01", ["lunch", "Museum", "hike"])
        assert result.keyword_counts == {"lunch": 1, "Museum": 1, "hike": 0}

    def test_substring_match_without_word_boundaries(self):
        events = {
            "2024-05-01": {"cityRecords": [{"city": "Oslo", "activities": [{"description": "Meetings all day"}]}]}
        }
        result = aggregate(events, "2024-05-01", "2024-05-01", ["meet"])
        assert result.keyword_counts == {"meet": 1}

    def test_boundaries_are_inclusive(self, trip_events):
        result = aggregate(trip_events, "2024-05-02", "2024-05-07", [])
        assert result.city_durations == {"paris": 1, "lyon": 1, "berlin": 1}

    def test_days_outside_range_excluded(self, trip_events):
        result = aggregate(trip_events, "2024-05-03", "2024-05-06", ["meeting"])
        assert result.city_durations == {}
        assert result.keyword_counts == {"meeting": 0}

    def test_full_trip(self, trip_events):
        result = aggregate(trip_events, "2024-05-01", "2024-05-31", ["meeting", "museum"])
        assert result.city_durations == {"paris": 2, "lyon": 1, "berlin": 1}
        assert result.keyword_counts == {"meeting": 3, "museum": 3}

    def test_no_keywords_omits_counts(self, trip_events):
        result = aggregate(trip_events, "2024-05-01", "2024-05-31", [])
        assert result.keyword_counts is None
        assert "keywordCounts" not in result.to_response()

    def test_blank_city_names_skipped(self):
        events = {"2024-05-01": {"cityRecords": [{"city": "   "}, {"city": ""}, {"city": "Rome"}]}}
        result = aggregate(events, "2024-05-01", "2024-05-01", [])
        assert result.city_durations == {"rome": 1}

    def test_malformed_entries_skipped(self):
        events = {
            "2024-05-01": "not a day",
            "2024-05-02": {"cityRecords": "nope"},
            "2024-05-03": {"cityRecords": [None, 42, {"city": 7}, {"city": "Rome", "activities": "x"}]},
            "2024-05-04": {
                "cityRecords": [
                    {"city": "Rome", "activities": [None, {"description": None}, {"description": "pizza"}]}
                ]
            },
            "2024-05-05": {},
        }
        result = aggregate(events, "2024-05-01", "2024-05-31", ["pizza"])
        assert result.city_durations == {"rome": 2}
        assert result.keyword_counts == {"pizza": 1}

    def test_malformed_date_keys_never_match(self):
        events = {
            "2024-05-01x": {"cityRecords": [{"city": "Rome"}]},
            "2024-5-2": {"cityRecords": [{"city": "Rome"}]},
            "2024-05-02": {"cityRecords": [{"city": "Milan"}]},
        }
        result = aggregate(events, "2024-05-01", "2024-05-31", [])
        assert result.city_durations == {"milan": 1}

    def test_empty_day_contributes_nothing(self):
        events = {"2024-05-03": {"date": "2024-05-03", "cityRecords": []}}
        result = aggregate(events, "2024-05-01", "2024-05-31", ["x"])
        assert result.city_durations == {}
        assert result.keyword_counts == {"x": 0}

    def test_weather_ignored(self, trip_events):
        without_weather = {
            key: {
                **day,
                "cityRecords": [
                    {k: v for k, v in record.items() if k != "weather"}
                    for record in day["cityRecords"]
                ],
            }
            for key, day in trip_events.items()
        }
        assert aggregate(trip_events, "2024-05-01", "2024-05-31", ["museum"]) == aggregate(
            without_weather, "2024-05-01", "2024-05-31", ["museum"]
        )


class TestStatisticsAggregator:
    """Tests for the aggregator against a document source."""

    @pytest.mark.asyncio
    async def test_tokyo_scenario(self, tokyo_events):
        aggregator = StatisticsAggregator(store_with(tokyo_events))
        result = await aggregator.compute_statistics("u1", "2024-03-01", "2024-03-02", "meeting")
        assert result.to_response() == {
            "cityDurations": {"tokyo": 2},
            "keywordCounts": {"meeting": 2},
        }

    @pytest.mark.asyncio
    async def test_missing_document(self):
        aggregator = StatisticsAggregator(FakeStore())
        result = await aggregator.compute_statistics(
            "u1", "2024-01-01", "2024-12-31", ["meeting", "museum"]
        )
        assert result == StatisticsResult(
            city_durations={}, keyword_counts={"meeting": 0, "museum": 0}
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("events", [None, {}, [], "garbage", 12])
    async def test_empty_or_malformed_events(self, events):
        aggregator = StatisticsAggregator(store_with(events))
        result = await aggregator.compute_statistics("u1", "2024-01-01", "2024-12-31", ["x"])
        assert result.city_durations == {}
        assert result.keyword_counts == {"x": 0}

    @pytest.mark.asyncio
    async def test_document_without_events_key(self):
        aggregator = StatisticsAggregator(FakeStore({"u1": {"userId": "u1"}}))
        result = await aggregator.compute_statistics("u1", "2024-01-01", "2024-12-31")
        assert result.to_response() == {"cityDurations": {}}

    @pytest.mark.asyncio
    async def test_inverted_range_checked_before_storage(self, tokyo_events):
        store = store_with(tokyo_events)
        aggregator = StatisticsAggregator(store)
        with pytest.raises(InvalidRange):
            await aggregator.compute_statistics("u1", "2024-03-02", "2024-03-01")
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_trailing_newline_date_rejected(self, tokyo_events):
        store = store_with(tokyo_events)
        with pytest.raises(InvalidRange):
            await StatisticsAggregator(store).compute_statistics(
                "u1", "2024-03-01\n", "2024-03-01\n"
            )
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_empty_user_id_rejected(self):
        store = FakeStore()
        with pytest.raises(Unauthorized):
            await StatisticsAggregator(store).compute_statistics("", "2024-03-01", "2024-03-02")
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_only_reads_callers_document(self, tokyo_events):
        store = FakeStore({"someone-else": {"userId": "someone-else", "events": tokyo_events}})
        result = await StatisticsAggregator(store).compute_statistics(
            "u1", "2024-03-01", "2024-03-02"
        )
        assert store.calls == ["u1"]
        assert result.city_durations == {}

    @pytest.mark.asyncio
    async def test_storage_failure_propagates(self):
        aggregator = StatisticsAggregator(FakeStore(error=StorageFailure()))
        with pytest.raises(StorageFailure):
            await aggregator.compute_statistics("u1", "2024-03-01", "2024-03-02")

    @pytest.mark.asyncio
    async def test_repeated_calls_identical(self, trip_events):
        aggregator = StatisticsAggregator(store_with(trip_events))
        first = await aggregator.compute_statistics("u1", "2024-05-01", "2024-05-31", "museum")
        second = await aggregator.compute_statistics("u1", "2024-05-01", "2024-05-31", "museum")
        assert first == second

    @pytest.mark.asyncio
    async def test_does_not_mutate_document(self, trip_events):
        import copy

        snapshot = copy.deepcopy(trip_events)
        await StatisticsAggregator(store_with(trip_events)).compute_statistics(
            "u1", "2024-05-01", "2024-05-31", "meeting"
        )
        assert trip_events == snapshot

    @pytest.mark.asyncio
    async def test_blank_keywords_excluded(self, tokyo_events):
        aggregator = StatisticsAggregator(store_with(tokyo_events))
        result = await aggregator.compute_statistics("u1", "2024-03-01", "2024-03-02", " , meeting ,")
        assert result.keyword_counts == {"meeting": 2}
        assert "" not in result.keyword_counts
