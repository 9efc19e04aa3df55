# backend/tests/test_islamic_calendar.py
# Date hégirienne approximative et compte à rebours jusqu'au Maghrib.

import datetime as dt
import re

from focus_challenge.services.challenge.ist_calendar import IST
from focus_challenge.services.islamic_calendar import (
    HIJRI_MONTHS,
    hijri_date,
    hijri_parts,
    next_maghrib,
    time_until,
    today_summary,
)


def test_hijri_parts_are_in_range():
    day, month, year = hijri_parts(dt.datetime(2026, 3, 1, 12, 0, tzinfo=dt.timezone.utc))

    assert 1 <= day <= 30
    assert 1 <= month <= 12
    assert 1440 <= year <= 1450


def test_hijri_date_format():
    text = hijri_date(dt.datetime(2026, 3, 1, 12, 0, tzinfo=dt.timezone.utc))

    match = re.match(r"^(\d+) (.+) (\d+) AH$", text)
    assert match is not None
    assert match.group(2) in HIJRI_MONTHS


class TestMaghrib:
    def test_later_today(self):
        now = dt.datetime(2026, 3, 1, 10, 30, tzinfo=IST)
        assert next_maghrib(now) == dt.datetime(2026, 3, 1, 18, 0, tzinfo=IST)

    def test_tomorrow_after_sunset(self):
        now = dt.datetime(2026, 3, 1, 19, 0, tzinfo=IST)
        assert next_maghrib(now) == dt.datetime(2026, 3, 2, 18, 0, tzinfo=IST)

    def test_time_until(self):
        now = dt.datetime(2026, 3, 1, 10, 30, tzinfo=IST)

        assert time_until(now + dt.timedelta(hours=7, minutes=30), now) == "7h 30m"
        assert time_until(now + dt.timedelta(minutes=45), now) == "45m"
        assert time_until(now - dt.timedelta(minutes=1), now) == "Next Maghrib"


def test_today_summary_in_ist():
    # 13:00 UTC = 18:30 IST, Maghrib déjà passé
    now = dt.datetime(2026, 3, 1, 13, 0, tzinfo=dt.timezone.utc)

    summary = today_summary(now, IST)

    assert summary["gregorian_date"] == "2026-03-01"
    assert summary["next_maghrib"] == dt.datetime(2026, 3, 2, 18, 0, tzinfo=IST)
    assert summary["time_to_maghrib"] == "23h 30m"
    assert summary["hijri_date"].endswith("AH")
