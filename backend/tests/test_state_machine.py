# backend/tests/test_state_machine.py
# Machine d'états pure du challenge.

import datetime as dt

import pytest

from focus_challenge.core.exceptions import ChallengeStateError, StaleCurrentDayError
from focus_challenge.models.challenge_settings import ChallengeSettings
from focus_challenge.services.challenge import state_machine as sm
from focus_challenge.services.challenge.effects import (
    ActivateTasksForDay,
    DeactivateAllTasks,
    DeactivateTasksForDay,
)

from .conftest import T0

HOUR = dt.timedelta(hours=1)
DAY = dt.timedelta(days=1)


@pytest.fixture
def running():
    """Challenge démarré à T0, jours 0..14."""
    return sm.start(ChallengeSettings(), T0, default_day_count=15).settings


class TestStart:
    def test_start_from_defaults(self):
        transition = sm.start(ChallengeSettings(), T0, default_day_count=15)
        settings = transition.settings

        assert transition.changed is True
        assert settings.is_active is True
        assert settings.is_paused is False
        assert settings.status == "active"
        assert settings.current_day == 0
        assert settings.start_date == T0
        assert settings.end_date == T0 + 15 * DAY
        assert len(settings.challenge_days) == 15
        assert settings.max_day == 14
        assert settings.challenge_days[0].activated_at == T0
        assert transition.commands == (DeactivateAllTasks(), ActivateTasksForDay(0))

    def test_start_without_trial_does_not_activate_day_0(self):
        transition = sm.start(ChallengeSettings(trial_enabled=False), T0)
        assert transition.commands == (DeactivateAllTasks(),)

    def test_explicit_day_count(self):
        transition = sm.start(ChallengeSettings(), T0, day_count=5)
        assert len(transition.settings.challenge_days) == 5

    def test_restart_keeps_schedule_length(self, running):
        later = T0 + 3 * DAY
        transition = sm.start(running, later)

        assert len(transition.settings.challenge_days) == 15
        assert transition.settings.challenge_days[0].scheduled_date == later
        assert transition.settings.current_day == 0


class TestStop:
    def test_stop_never_started_is_noop(self):
        transition = sm.stop(ChallengeSettings(), T0)
        assert transition.changed is False
        assert transition.commands == ()

    def test_stop_running(self, running):
        transition = sm.stop(running, T0 + 2 * DAY)
        settings = transition.settings

        assert settings.is_active is False
        assert settings.status == "stopped"
        assert settings.end_date == T0 + 2 * DAY
        assert settings.scheduled_start_date is None
        assert not any(d.is_active for d in settings.challenge_days)
        assert transition.commands == (DeactivateAllTasks(),)

    def test_stop_is_idempotent(self, running):
        stopped = sm.stop(running, T0 + DAY).settings
        assert sm.stop(stopped, T0 + 2 * DAY).changed is False


class TestPauseResume:
    def test_pause(self, running):
        transition = sm.pause(running, T0 + HOUR)

        assert transition.settings.is_paused is True
        assert transition.settings.paused_at == T0 + HOUR
        assert transition.settings.status == "paused"
        assert transition.commands == (DeactivateAllTasks(),)

    def test_pause_requires_active(self):
        with pytest.raises(ChallengeStateError):
            sm.pause(ChallengeSettings(), T0)

    def test_pause_twice_is_rejected(self, running):
        paused = sm.pause(running, T0 + HOUR).settings
        with pytest.raises(ChallengeStateError):
            sm.pause(paused, T0 + 2 * HOUR)

    def test_resume_requires_pause(self, running):
        with pytest.raises(ChallengeStateError, match="not currently paused"):
            sm.resume(running, T0 + HOUR)

    def test_resume_keeps_paused_day_and_reanchors_schedule(self, running):
        at_day_3 = sm.set_current_day(running, 0, 3, T0 + 3 * DAY).settings
        paused_at = T0 + 3 * DAY + 12 * HOUR
        paused = sm.pause(at_day_3, paused_at).settings

        resumed_at = paused_at + 5 * DAY
        transition = sm.resume(paused, resumed_at)
        settings = transition.settings

        assert settings.is_paused is False
        assert settings.current_day == 3
        assert settings.resumed_at == resumed_at
        assert settings.day(3).scheduled_date == resumed_at
        assert settings.day(4).scheduled_date == resumed_at + DAY
        assert settings.day(4).tracking_date == resumed_at
        # Jours antérieurs inchangés
        assert settings.day(2).scheduled_date == T0 + 2 * DAY
        assert [d.day_number for d in settings.challenge_days if d.is_active] == [3]
        assert transition.commands == (ActivateTasksForDay(3),)


class TestDayChanges:
    def test_advance(self, running):
        transition = sm.advance_to_next_day(running, 0, T0 + DAY)
        settings = transition.settings

        assert settings.current_day == 1
        assert settings.day(0).is_completed is True
        assert settings.day(0).is_active is False
        assert settings.day(1).is_active is True
        assert settings.day(1).activated_at == T0 + DAY
        assert transition.commands == (DeactivateTasksForDay(0), ActivateTasksForDay(1))
        assert transition.expect == {"current_day": 0, "is_active": True, "is_paused": False}

    def test_advance_with_stale_observation(self, running):
        with pytest.raises(StaleCurrentDayError) as exc_info:
            sm.advance_to_next_day(running, 2, T0 + DAY)
        assert exc_info.value.code == "STALE_CURRENT_DAY"
        assert exc_info.value.details == {"observed_day": 2, "stored_day": 0}

    def test_advance_while_paused_is_rejected(self, running):
        paused = sm.pause(running, T0 + HOUR).settings
        with pytest.raises(ChallengeStateError):
            sm.advance_to_next_day(paused, 0, T0 + DAY)

    def test_advance_past_last_day_stops(self, running):
        last = sm.set_current_day(running, 0, 14, T0 + 14 * DAY).settings

        transition = sm.advance_to_next_day(last, 14, T0 + 15 * DAY)

        assert transition.settings.is_active is False
        assert transition.commands == (DeactivateAllTasks(),)
        assert transition.expect == {"current_day": 14, "is_active": True, "is_paused": False}

    def test_previous_day(self, running):
        at_2 = sm.set_current_day(running, 0, 2, T0).settings
        transition = sm.go_to_previous_day(at_2, 2, T0)

        assert transition.settings.current_day == 1
        assert transition.commands == (DeactivateTasksForDay(2), ActivateTasksForDay(1))

    def test_previous_day_at_zero_is_noop(self, running):
        transition = sm.go_to_previous_day(running, 0, T0)
        assert transition.changed is False

    def test_set_current_day_is_clamped(self, running):
        transition = sm.set_current_day(running, 0, 99, T0)
        assert transition.settings.current_day == 14

    def test_previous_day_to_trial_without_trial(self):
        settings = sm.start(ChallengeSettings(trial_enabled=False), T0, day_count=5).settings
        at_1 = sm.set_current_day(settings, 0, 1, T0).settings

        transition = sm.go_to_previous_day(at_1, 1, T0)

        assert transition.settings.current_day == 0
        assert transition.commands == (DeactivateTasksForDay(1),)


class TestSchedule:
    def test_set_schedule(self):
        start_at = T0 + DAY
        transition = sm.set_schedule(ChallengeSettings(), T0, start_at, total_days=7, trial_enabled=False)
        settings = transition.settings

        assert len(settings.challenge_days) == 8
        assert settings.scheduled_start_date == start_at
        assert settings.scheduled_end_date == start_at + 8 * DAY
        assert settings.trial_enabled is False
        assert settings.is_active is False
        assert transition.commands == ()

    def test_set_schedule_rejects_past_start(self):
        with pytest.raises(ChallengeStateError):
            sm.set_schedule(ChallengeSettings(), T0, T0 - HOUR, total_days=7)

    def test_set_schedule_rejects_active(self, running):
        with pytest.raises(ChallengeStateError):
            sm.set_schedule(running, T0, T0 + DAY, total_days=7)

    def test_check_and_start(self):
        scheduled = sm.set_schedule(ChallengeSettings(), T0, T0 + DAY, total_days=7).settings

        assert sm.check_and_start(scheduled, T0 + 23 * HOUR).changed is False

        transition = sm.check_and_start(scheduled, T0 + DAY)
        assert transition.settings.is_active is True
        assert transition.settings.start_date == T0 + DAY
        assert len(transition.settings.challenge_days) == 8

    def test_check_and_start_without_schedule(self):
        assert sm.check_and_start(ChallengeSettings(), T0).changed is False

    def test_check_and_end(self):
        scheduled = sm.set_schedule(ChallengeSettings(), T0, T0 + DAY, total_days=7).settings
        started = sm.check_and_start(scheduled, T0 + DAY).settings

        assert sm.check_and_end(started, T0 + 5 * DAY).changed is False
        transition = sm.check_and_end(started, T0 + 9 * DAY)
        assert transition.settings.is_active is False
        assert transition.settings.scheduled_end_date is None
