"""Tests for user-local date resolution."""

from datetime import date, datetime, timezone

from habits.clock import is_valid_timezone, user_local_today

# 23:30 UTC on May 6th is already May 7th in Tokyo and still May 6th in New York.
LATE_UTC = datetime(2024, 5, 6, 23, 30, tzinfo=timezone.utc)


def test_utc_when_unset():
    assert user_local_today(None, LATE_UTC) == date(2024, 5, 6)


def test_timezone_ahead_of_utc():
    assert user_local_today("Asia/Tokyo", LATE_UTC) == date(2024, 5, 7)


def test_timezone_behind_utc():
    assert user_local_today("America/New_York", LATE_UTC) == date(2024, 5, 6)


def test_unknown_timezone_falls_back_to_utc():
    assert user_local_today("Mars/Olympus_Mons", LATE_UTC) == date(2024, 5, 6)


def test_naive_now_treated_as_utc():
    assert user_local_today("Asia/Tokyo", LATE_UTC.replace(tzinfo=None)) == date(2024, 5, 7)


def test_is_valid_timezone():
    assert is_valid_timezone("Europe/Lisbon")
    assert not is_valid_timezone("Not/AZone")
    assert not is_valid_timezone("")
