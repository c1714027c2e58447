from datetime import date, datetime, timezone, timedelta

from rostersync.shared.utils.date_utils import ensure_utc, parse_date, parse_datetime


def test_parse_date_plain_iso():
    assert parse_date("2024-01-05") == date(2024, 1, 5)


def test_parse_date_from_utc_timestamp():
    assert parse_date("2024-01-05T00:00:00Z") == date(2024, 1, 5)


def test_parse_date_uses_utc_calendar_day():
    # 01:00 en UTC+8 es el dia anterior en UTC
    assert parse_date("2024-01-05T01:00:00+08:00") == date(2024, 1, 4)


def test_parse_date_invalid_values():
    assert parse_date("") is None
    assert parse_date(None) is None
    assert parse_date("2024-13-01") is None
    assert parse_date(12345) is None


def test_parse_datetime_z_suffix():
    assert parse_datetime("2024-01-05T02:30:00Z") == datetime(2024, 1, 5, 2, 30, tzinfo=timezone.utc)


def test_parse_datetime_invalid():
    assert parse_datetime("ayer") is None


def test_ensure_utc_naive_is_assumed_utc():
    naive = datetime(2024, 1, 5, 12, 0)
    assert ensure_utc(naive).tzinfo == timezone.utc

    offset = datetime(2024, 1, 5, 12, 0, tzinfo=timezone(timedelta(hours=8)))
    assert ensure_utc(offset).hour == 4
