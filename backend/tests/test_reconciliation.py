# backend/tests/test_reconciliation.py
# Boucle de réconciliation : démarrage/arrêt planifiés et alignement du jour IST.

import asyncio
import datetime as dt

import pytest

from focus_challenge.services.challenge import reconciliation as rc
from focus_challenge.services.challenge.challenge_service import ChallengeService
from focus_challenge.services.challenge.marker_store import (
    JsonFileMarkerStore,
    MemoryMarkerStore,
    marker_key,
)

from .conftest import T0

DAY = dt.timedelta(days=1)
HOUR = dt.timedelta(hours=1)


class TestReconciliationTick:
    @pytest.fixture
    def service(self, store, clock, app_settings):
        return ChallengeService(store, clock=clock, app_settings=app_settings)

    @pytest.fixture
    def markers(self):
        return MemoryMarkerStore()

    @pytest.fixture
    def loop(self, service, markers):
        return rc.ReconciliationLoop(service, markers, challenge_id="ramadan", interval=3600)

    @pytest.mark.asyncio
    async def test_inactive_without_schedule(self, loop):
        assert await loop.tick() == rc.TICK_INACTIVE

    @pytest.mark.asyncio
    async def test_catches_up_one_day_at_a_time(self, loop, service, markers, clock):
        # Jour k planifié à T0 + k jours, soit le (1 + k) mars en IST
        await service.start_challenge()
        await service.advance_to_next_day(observed_day=0)
        await service.advance_to_next_day(observed_day=1)

        calls = []
        original = service.advance_to_next_day

        async def spy(observed_day=None):
            calls.append(observed_day)
            return await original(observed_day)

        service.advance_to_next_day = spy
        clock.set(T0 + 5 * DAY + HOUR)

        assert await loop.tick() == rc.TICK_ADVANCED

        assert calls == [2, 3, 4]
        settings = await service.get_settings()
        assert settings.current_day == 5
        assert [d.day_number for d in settings.challenge_days if d.is_completed] == [0, 1, 2, 3, 4]
        assert markers.get("lastDayAdvancement_ramadan") == "2026-03-06"

    @pytest.mark.asyncio
    async def test_marker_makes_tick_idempotent_within_ist_day(self, loop, service, clock):
        await service.start_challenge()
        clock.set(T0 + 2 * DAY + HOUR)
        assert await loop.tick() == rc.TICK_ADVANCED

        # Correction manuelle par un admin : pas d'écrasement le même jour IST
        await service.set_current_day(1, observed_day=2)
        clock.advance(hours=6)
        assert await loop.tick() == rc.TICK_ALREADY_DONE
        assert (await service.get_settings()).current_day == 1

    @pytest.mark.asyncio
    async def test_in_sync_does_not_write_marker(self, loop, service, markers, clock):
        await service.start_challenge()
        clock.advance(hours=2)

        assert await loop.tick() == rc.TICK_IN_SYNC
        assert markers.get(loop.marker_key) is None

    @pytest.mark.asyncio
    async def test_rewinds_directly(self, loop, service, clock):
        await service.start_challenge()
        await service.set_current_day(4, observed_day=0)
        clock.set(T0 + 2 * DAY + HOUR)

        assert await loop.tick() == rc.TICK_REWOUND
        assert (await service.get_settings()).current_day == 2

    @pytest.mark.asyncio
    async def test_paused_challenge_is_skipped(self, loop, service, clock):
        await service.start_challenge()
        await service.pause_challenge()
        clock.set(T0 + 3 * DAY + HOUR)

        assert await loop.tick() == rc.TICK_PAUSED
        assert (await service.get_settings()).current_day == 0

    @pytest.mark.asyncio
    async def test_scheduled_start_and_end(self, loop, service, clock):
        await service.set_schedule(T0 + DAY, total_days=3)

        assert await loop.tick() == rc.TICK_WAITING

        clock.set(T0 + DAY)
        assert await loop.tick() == rc.TICK_STARTED
        assert (await service.get_settings()).is_active is True

        clock.set(T0 + 5 * DAY)
        assert await loop.tick() == rc.TICK_ENDED
        assert (await service.get_settings()).is_active is False

    @pytest.mark.asyncio
    async def test_advances_up_to_last_scheduled_day(self, loop, service, clock):
        await service.start_challenge(day_count=3)
        clock.set(T0 + 2 * DAY + HOUR)

        assert await loop.tick() == rc.TICK_ADVANCED
        assert (await service.get_settings()).current_day == 2

    @pytest.mark.asyncio
    async def test_cancelled_tick_does_nothing(self, loop, service, clock):
        await service.start_challenge()
        await loop.stop()
        clock.set(T0 + 3 * DAY + HOUR)

        assert await loop.tick() == rc.TICK_CANCELLED
        assert (await service.get_settings()).current_day == 0

    @pytest.mark.asyncio
    async def test_marker_write_failure_keeps_outcome(self, service, clock):
        class ReadOnlyMarkers(MemoryMarkerStore):
            def set(self, key, value):
                raise OSError("disk full")

        loop = rc.ReconciliationLoop(service, ReadOnlyMarkers(), interval=3600)
        await service.start_challenge()
        clock.set(T0 + DAY + HOUR)

        assert await loop.tick() == rc.TICK_ADVANCED
        assert (await service.get_settings()).current_day == 1
        # Jour déjà atteint : le tick suivant est simplement en phase
        assert await loop.tick() == rc.TICK_IN_SYNC

    @pytest.mark.asyncio
    async def test_stale_snapshot_does_not_freeze_loop(self, loop, service, clock):
        # Abonnement mort après le snapshot initial (challenge inactif)
        loop._on_settings({"is_active": False})
        await service.start_challenge()
        clock.set(T0 + 3 * DAY + HOUR)
        assert loop._snapshot.is_active is False

        assert await loop.tick() == rc.TICK_ADVANCED
        assert (await service.get_settings()).current_day == 3

    @pytest.mark.asyncio
    async def test_load_failure_is_reported(self, markers):
        class BrokenService:
            store = None

            def clock(self):
                return T0

            async def get_settings(self):
                raise RuntimeError("store down")

        loop = rc.ReconciliationLoop(BrokenService(), markers)
        assert await loop.tick() == rc.TICK_ERROR

    @pytest.mark.asyncio
    async def test_read_failure_falls_back_to_snapshot(self, markers):
        class BrokenService:
            store = None

            def clock(self):
                return T0

            async def get_settings(self):
                raise RuntimeError("store down")

        loop = rc.ReconciliationLoop(BrokenService(), markers)
        loop._on_settings({"is_active": False})
        assert await loop.tick() == rc.TICK_INACTIVE


class TestReconciliationLifecycle:
    @pytest.mark.asyncio
    async def test_start_runs_first_tick_and_stop_unsubscribes(self, store, clock, app_settings):
        service = ChallengeService(store, clock=clock, app_settings=app_settings)
        await service.start_challenge()
        clock.set(T0 + DAY + HOUR)
        loop = rc.ReconciliationLoop(service, MemoryMarkerStore(), interval=3600)

        loop.start()
        assert loop.running is True
        for _ in range(10):
            await asyncio.sleep(0)

        assert (await service.get_settings()).current_day == 1
        assert loop._snapshot is not None and loop._snapshot.current_day == 1

        await loop.stop()
        assert loop.running is False
        await service.set_current_day(3, observed_day=1)
        assert loop._snapshot.current_day == 1

    @pytest.mark.asyncio
    async def test_loop_survives_marker_failure(self, store, clock, app_settings):
        class ReadOnlyMarkers(MemoryMarkerStore):
            def set(self, key, value):
                raise OSError("disk full")

        service = ChallengeService(store, clock=clock, app_settings=app_settings)
        await service.start_challenge()
        clock.set(T0 + DAY + HOUR)
        loop = rc.ReconciliationLoop(service, ReadOnlyMarkers(), interval=3600)

        loop.start()
        for _ in range(10):
            await asyncio.sleep(0)

        assert (await service.get_settings()).current_day == 1
        assert loop.running is True
        await loop.stop()


class TestMarkerStore:
    def test_marker_key(self):
        assert marker_key(None) == "lastDayAdvancement_default"
        assert marker_key("abc") == "lastDayAdvancement_abc"

    def test_json_file_round_trip(self, tmp_path):
        path = tmp_path / "markers" / "local.json"
        JsonFileMarkerStore(path).set("k", "2026-03-01")

        assert JsonFileMarkerStore(path).get("k") == "2026-03-01"
        assert JsonFileMarkerStore(path).get("other") is None

    def test_unreadable_file_is_empty(self, tmp_path):
        path = tmp_path / "local.json"
        path.write_text("{not json", encoding="utf-8")

        markers = JsonFileMarkerStore(path)
        assert markers.get("k") is None
        markers.set("k", "v")
        assert markers.get("k") == "v"
