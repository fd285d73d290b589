from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from habitloop.core import time_utils
from habitloop.core.time_utils import (
    add_days,
    add_months,
    add_weeks,
    day_key,
    is_future,
    is_today,
    month_days,
    month_interval,
    to_local,
    week_interval,
    weekday_index,
)

UTC = ZoneInfo("UTC")
NEW_YORK = ZoneInfo("America/New_York")
TOKYO = ZoneInfo("Asia/Tokyo")


def test_day_key_same_local_day_normalizes_identically():
    morning = datetime(2025, 9, 17, 0, 5, tzinfo=UTC)
    night = datetime(2025, 9, 17, 23, 55, tzinfo=UTC)
    assert day_key(morning) == day_key(night) == date(2025, 9, 17)


def test_day_key_uses_the_local_zone():
    instant = datetime(2025, 9, 18, 2, 0, tzinfo=UTC)
    assert day_key(instant, NEW_YORK) == date(2025, 9, 17)
    assert day_key(instant, TOKYO) == date(2025, 9, 18)
    assert day_key(datetime(2025, 9, 17, 20, 0, tzinfo=UTC), TOKYO) == date(2025, 9, 18)


def test_day_key_follows_configured_zone(monkeypatch):
    monkeypatch.setattr(time_utils.settings, "TIMEZONE", "America/New_York")
    assert day_key(datetime(2025, 9, 18, 2, 0, tzinfo=UTC)) == date(2025, 9, 17)


def test_day_key_passes_naive_and_plain_dates_through():
    assert day_key(datetime(2025, 9, 17, 23, 59)) == date(2025, 9, 17)
    assert day_key(date(2025, 9, 17)) == date(2025, 9, 17)


def test_to_local_assumes_naive_is_utc():
    local = to_local(datetime(2025, 9, 18, 2, 0), NEW_YORK)
    assert local.hour == 22
    assert local.date() == date(2025, 9, 17)


def test_is_today_and_is_future():
    now = datetime(2025, 9, 17, 23, 0, tzinfo=UTC)
    assert is_today(date(2025, 9, 17), now)
    assert not is_today(date(2025, 9, 16), now)
    assert is_future(date(2025, 9, 18), now)
    assert not is_future(date(2025, 9, 17), now)
    assert not is_future(datetime(2025, 9, 17, 23, 59, tzinfo=UTC), now)


def test_is_today_across_a_zone_boundary():
    # 01:00 UTC on the 18th is still the 17th in New York
    now = datetime(2025, 9, 18, 1, 0, tzinfo=UTC)
    assert is_today(date(2025, 9, 17), now, NEW_YORK)
    assert is_future(date(2025, 9, 18), now, NEW_YORK)


@pytest.mark.parametrize(
    "day, months, expected",
    [
        (date(2025, 1, 31), 1, date(2025, 2, 28)),
        (date(2024, 1, 31), 1, date(2024, 2, 29)),
        (date(2025, 12, 15), 1, date(2026, 1, 15)),
        (date(2025, 3, 31), -1, date(2025, 2, 28)),
        (date(2025, 1, 10), -13, date(2023, 12, 10)),
        (date(2025, 5, 31), 12, date(2026, 5, 31)),
    ],
)
def test_add_months_stays_on_a_valid_day(day, months, expected):
    assert add_months(day, months) == expected


def test_add_days_and_weeks_roll_over_boundaries():
    assert add_days(date(2025, 12, 31), 1) == date(2026, 1, 1)
    assert add_days(date(2024, 3, 1), -1) == date(2024, 2, 29)
    assert add_weeks(date(2025, 12, 28), 1) == date(2026, 1, 4)


def test_weekday_index_is_sunday_based():
    assert weekday_index(date(2025, 9, 14)) == 0  # Sunday
    assert weekday_index(date(2025, 9, 17)) == 3  # Wednesday
    assert weekday_index(date(2025, 9, 20)) == 6  # Saturday


def test_month_interval():
    assert month_interval(date(2025, 2, 14)) == (date(2025, 2, 1), 28)
    assert month_interval(date(2024, 2, 29)) == (date(2024, 2, 1), 29)
    assert month_interval(datetime(2025, 10, 31, 12, tzinfo=UTC)) == (date(2025, 10, 1), 31)


def test_month_days_cover_the_month():
    days = month_days(date(2026, 4, 20))
    assert len(days) == 30
    assert days[0] == date(2026, 4, 1)
    assert days[-1] == date(2026, 4, 30)


@pytest.mark.parametrize("reference", [date(2025, 9, 14), date(2025, 9, 17), date(2025, 9, 20)])
def test_week_interval_starts_sunday(reference):
    week = week_interval(reference)
    assert week[0] == date(2025, 9, 14)
    assert week[-1] == date(2025, 9, 20)
    assert len(week) == 7


def test_week_interval_across_year_end():
    week = week_interval(date(2026, 1, 1))
    assert week[0] == date(2025, 12, 28)
    assert week[-1] == date(2026, 1, 3)
