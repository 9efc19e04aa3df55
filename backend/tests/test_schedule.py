# backend/tests/test_schedule.py
# Planification des jours du challenge et calcul du jour courant.

import datetime as dt

from focus_challenge.services.challenge.schedule import (
    challenge_duration_days,
    compute_current_day,
    generate_challenge_days,
    regenerate_from_day,
    schedule_end_date,
)

from .conftest import T0

HOUR = dt.timedelta(hours=1)
DAY = dt.timedelta(days=1)


class TestGenerateChallengeDays:
    def test_contiguous_days(self):
        days = generate_challenge_days(T0, 24, 15)

        assert [d.day_number for d in days] == list(range(15))
        for k, day in enumerate(days):
            assert day.scheduled_date == T0 + k * DAY
            assert day.tracking_date == day.scheduled_date - DAY
            assert day.is_completed is False

    def test_only_first_day_active(self):
        days = generate_challenge_days(T0, 24, 5)
        assert [d.is_active for d in days] == [True, False, False, False, False]

    def test_tracking_date_is_always_24h_before(self):
        days = generate_challenge_days(T0, 12, 3)

        assert days[1].scheduled_date == T0 + 12 * HOUR
        assert days[1].tracking_date == T0 - 12 * HOUR

    def test_starting_day(self):
        days = generate_challenge_days(T0, 24, 3, starting_day=4)
        assert [d.day_number for d in days] == [4, 5, 6]
        assert days[0].scheduled_date == T0

    def test_zero_count(self):
        assert generate_challenge_days(T0, 24, 0) == []


class TestRegenerateFromDay:
    def test_reanchors_from_given_day(self):
        days = generate_challenge_days(T0, 24, 8)
        anchor = T0 + 5 * DAY + 2 * HOUR

        result = regenerate_from_day(days, 3, anchor, 24)

        # Historique conservé
        for k in range(3):
            assert result[k].scheduled_date == T0 + k * DAY
        assert result[3].scheduled_date == anchor
        assert result[4].scheduled_date == anchor + DAY
        assert result[7].tracking_date == anchor + 3 * DAY

    def test_does_not_mutate_input(self):
        days = generate_challenge_days(T0, 24, 4)
        regenerate_from_day(days, 1, T0 + 10 * DAY, 24)
        assert days[1].scheduled_date == T0 + DAY


class TestComputeCurrentDay:
    def test_before_start_is_zero(self):
        assert compute_current_day(T0, 24, T0 - 3 * HOUR, 14) == 0

    def test_floor_of_elapsed_days(self):
        assert compute_current_day(T0, 24, T0 + 25 * HOUR, 14) == 1
        assert compute_current_day(T0, 24, T0 + 47 * HOUR, 14) == 1
        assert compute_current_day(T0, 24, T0 + 48 * HOUR, 14) == 2

    def test_custom_day_duration(self):
        assert compute_current_day(T0, 12, T0 + 25 * HOUR, 14) == 2

    def test_clamped_to_max_day(self):
        assert compute_current_day(T0, 24, T0 + 100 * DAY, 14) == 14

    def test_monotonic(self):
        previous = 0
        for hours in range(0, 24 * 20, 5):
            day = compute_current_day(T0, 24, T0 + hours * HOUR, 14)
            assert day >= previous
            previous = day


def test_challenge_duration_days():
    assert challenge_duration_days(T0, T0 + 36 * HOUR) == 2
    assert challenge_duration_days(T0, T0 + 7 * DAY) == 7
    assert challenge_duration_days(T0, T0) == 1


def test_schedule_end_date():
    assert schedule_end_date(T0, 24, 15) == T0 + 15 * DAY
    assert schedule_end_date(T0, 12, 4) == T0 + 2 * DAY
