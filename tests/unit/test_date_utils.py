"""Unit tests for date helpers"""

import pytest
from datetime import date, datetime, time, timezone
from balance_gateway.utils.date_utils import (
    calendar_horizon,
    format_instant,
    parse_iso_date,
    parse_iso_datetime,
    parse_time_of_day,
    to_utc_instant,
)


def test_parse_iso_date_accepts_dates_and_timestamps():
    assert parse_iso_date("2024-06-10") == date(2024, 6, 10)
    assert parse_iso_date("2024-06-10T06:00:00.000Z") == date(2024, 6, 10)
    assert parse_iso_date(date(2024, 6, 10)) == date(2024, 6, 10)
    assert parse_iso_date(None) is None
    assert parse_iso_date("") is None


def test_parse_time_of_day():
    assert parse_time_of_day("09:05") == time(9, 5)
    assert parse_time_of_day("") is None
    assert parse_time_of_day(None) is None
    with pytest.raises(ValueError):
        parse_time_of_day("9:5")


def test_to_utc_instant_defaults_to_local_midnight():
    assert to_utc_instant(date(2024, 6, 10), None, "UTC") == "2024-06-10T00:00:00.000Z"
    assert to_utc_instant(date(2024, 6, 10), None, "America/Mexico_City") == "2024-06-10T06:00:00.000Z"


def test_to_utc_instant_can_cross_into_next_day():
    assert to_utc_instant(date(2024, 6, 10), time(23, 0), "America/Mexico_City") == "2024-06-11T05:00:00.000Z"


def test_calendar_horizon():
    assert calendar_horizon(date(2024, 6, 1), 30) == (date(2024, 6, 1), date(2024, 7, 1))


def test_format_instant_normalizes_to_utc():
    moment = datetime(2024, 6, 10, 14, 30, 5, 123456, tzinfo=timezone.utc)
    assert format_instant(moment) == "2024-06-10T14:30:05.123Z"
    assert format_instant(datetime(2024, 6, 10, 8, 0)) == "2024-06-10T08:00:00.000Z"


def test_parse_iso_datetime_defaults_to_utc():
    assert parse_iso_datetime("2024-06-01T22:15:00.000Z") == datetime(2024, 6, 1, 22, 15, tzinfo=timezone.utc)
    assert parse_iso_datetime("2024-06-01T22:15:00").tzinfo == timezone.utc
