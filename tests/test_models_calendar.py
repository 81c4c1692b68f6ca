"""Tests for calendar document models."""

from datetime import date

import pytest

from city_journal.models.calendar import (
    Activity,
    CalendarDocument,
    CityRecord,
    DayRecord,
    is_date_key,
    normalize_city,
)


class TestDateKeys:
    """Tests for date-key helpers."""

    @pytest.mark.parametrize("value", ["2024-03-01", "1999-12-31", "0001-01-01"])
    def test_valid(self, value: str):
        assert is_date_key(value)

    @pytest.mark.parametrize(
        "value",
        [
            "2024-3-1",
            "2024/03/01",
            "2024-03-01T00:00",
            "2024-03-01\n",
            "２０２４-03-01",
            "٢٠٢٤-٠٣-٠١",
            "",
            None,
            20240301,
        ],
    )
    def test_invalid(self, value):
        assert not is_date_key(value)

    def test_zero_padding_keeps_string_order_chronological(self):
        keys = ["2024-10-01", "2024-02-15", "2023-12-31", "2024-02-09"]
        assert sorted(keys) == ["2023-12-31", "2024-02-09", "2024-02-15", "2024-10-01"]


class TestNormalizeCity:
    def test_trims_and_lowercases(self):
        assert normalize_city("  New York ") == "new york"

    def test_inner_whitespace_kept(self):
        assert normalize_city("San  Francisco") == "san  francisco"


class TestCityRecord:
    """Tests for the CityRecord model."""

    def test_generates_ids(self):
        record = CityRecord(city="Tokyo", activities=[Activity(description="sushi")])
        assert record.id
        assert record.activities[0].id
        assert record.id != CityRecord(city="Tokyo").id

    def test_blank_city_rejected(self):
        with pytest.raises(ValueError):
            CityRecord(city="   ")

    def test_stored_city_kept_as_entered(self):
        record = CityRecord(city=" Paris ")
        assert record.city == " Paris "

    def test_find_activity(self):
        record = CityRecord(city="Oslo", activities=[Activity(id="a1", description="fjord")])
        assert record.find_activity("a1").description == "fjord"
        assert record.find_activity("missing") is None

    def test_weather_snapshot(self):
        record = CityRecord.model_validate(
            {"city": "Oslo", "weather": {"temperature": -3, "condition": "Snow"}}
        )
        assert record.weather.temperature == -3
        assert record.weather.icon is None


class TestDayRecord:
    """Tests for the DayRecord model."""

    def test_camel_case_input(self):
        day = DayRecord.model_validate(
            {"date": "2024-03-01", "cityRecords": [{"id": "r1", "city": "Tokyo"}]}
        )
        assert day.date == date(2024, 3, 1)
        assert day.city_records[0].city == "Tokyo"

    def test_javascript_timestamp_date(self):
        day = DayRecord.model_validate({"date": "2024-03-01T00:00:00.000Z"})
        assert day.date_key == "2024-03-01"

    def test_find_city_record(self):
        day = DayRecord(date="2024-03-01", city_records=[CityRecord(id="r1", city="Kyoto")])
        assert day.find_city_record("r1").city == "Kyoto"
        assert day.find_city_record("r2") is None


class TestCalendarDocument:
    """Tests for the CalendarDocument model."""

    def test_valid_document(self, tokyo_events):
        document = CalendarDocument.model_validate({"userId": "u1", "events": tokyo_events})
        assert document.user_id == "u1"
        assert set(document.events) == {"2024-03-01", "2024-03-02"}

    def test_invalid_date_key(self):
        with pytest.raises(ValueError, match="Invalid date key"):
            CalendarDocument(user_id="u1", events={"2024-3-1": {"date": "2024-03-01"}})

    def test_date_must_match_key(self):
        with pytest.raises(ValueError, match="does not match key"):
            CalendarDocument(user_id="u1", events={"2024-03-01": {"date": "2024-03-02"}})

    def test_events_json_uses_client_shape(self, tokyo_events):
        document = CalendarDocument(user_id="u1", events=tokyo_events)
        events = document.events_json()

        day = events["2024-03-01"]
        assert day["date"] == "2024-03-01"
        assert day["cityRecords"][0]["city"] == "Tokyo"
        assert day["cityRecords"][0]["activities"] == [{"id": "a1", "description": "team meeting"}]
        assert "city_records" not in day

    def test_empty_day_allowed(self):
        document = CalendarDocument(
            user_id="u1", events={"2024-03-01": {"date": "2024-03-01", "cityRecords": []}}
        )
        assert document.events["2024-03-01"].city_records == []
