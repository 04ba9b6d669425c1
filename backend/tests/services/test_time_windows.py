from datetime import date, datetime, time
from zoneinfo import ZoneInfo

import pytest

from app.services.time_windows import (
    format_time_of_day,
    is_slot_expired,
    parse_time_of_day,
    slot_end_at,
)

IST = ZoneInfo("Asia/Kolkata")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("10:30 AM", time(10, 30)),
        ("10:30 am", time(10, 30)),
        ("2:05PM", time(14, 5)),
        ("12:00 PM", time(12, 0)),
        ("12:15 AM", time(0, 15)),
        ("11:59 PM", time(23, 59)),
        ("22:30", time(22, 30)),
        ("09:00", time(9, 0)),
        ("7:45", time(7, 45)),
        ("23:55:00", time(23, 55)),
        ("  08:10  ", time(8, 10)),
    ],
)
def test_parse_time_of_day_accepts_twelve_and_twenty_four_hour(raw, expected):
    assert parse_time_of_day(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["", "noon", "25:00", "10:75", "13:00 PM", "0:30 AM", "10.30", "10:30 XM", "1030"],
)
def test_parse_time_of_day_rejects_garbage(raw):
    with pytest.raises(ValueError):
        parse_time_of_day(raw)


def test_parse_time_of_day_passes_time_through_without_seconds():
    assert parse_time_of_day(time(9, 15, 42)) == time(9, 15)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (time(0, 5), "12:05 AM"),
        (time(9, 0), "9:00 AM"),
        (time(12, 30), "12:30 PM"),
        (time(22, 30), "10:30 PM"),
    ],
)
def test_format_time_of_day(value, expected):
    assert format_time_of_day(value) == expected


def test_slot_end_at_combines_date_and_time_in_slot_timezone():
    end = slot_end_at(date(2025, 1, 10), time(10, 30), IST)
    assert end == datetime(2025, 1, 10, 10, 30, tzinfo=IST)


def test_slot_expires_when_end_is_not_strictly_in_the_future():
    slot_date = date(2025, 1, 10)
    end = time(10, 30)
    assert is_slot_expired(slot_date, end, datetime(2025, 1, 10, 10, 29, tzinfo=IST), IST) is False
    assert is_slot_expired(slot_date, end, datetime(2025, 1, 10, 10, 30, tzinfo=IST), IST) is True
    assert is_slot_expired(slot_date, end, datetime(2025, 1, 10, 11, 0, tzinfo=IST), IST) is True


def test_slot_expiry_compares_instants_across_timezones():
    utc_now = datetime(2025, 1, 10, 4, 0, tzinfo=ZoneInfo("UTC"))
    # 04:00 UTC is 09:30 in India.
    assert is_slot_expired(date(2025, 1, 10), time(10, 0), utc_now, IST) is False
    assert is_slot_expired(date(2025, 1, 10), time(9, 30), utc_now, IST) is True
