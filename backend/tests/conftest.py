# backend/tests/conftest.py
import datetime as dt
import os

import pytest

# Avant tout import de focus_challenge.main : store mémoire, pas de boucle de fond
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("RECONCILE_ENABLED", "false")

from focus_challenge.core.settings import Settings  # noqa: E402
from focus_challenge.store.memory_store import MemoryDocumentStore  # noqa: E402

# 2026-03-01 00:00 UTC = 2026-03-01 05:30 IST
T0 = dt.datetime(2026, 3, 1, 0, 0, tzinfo=dt.timezone.utc)


class FakeClock:
    """Horloge réglable à la main (appelable comme utcnow)."""

    def __init__(self, now: dt.datetime = T0):
        self.now = now

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs) -> dt.datetime:
        self.now += dt.timedelta(**kwargs)
        return self.now

    def set(self, now: dt.datetime) -> dt.datetime:
        self.now = now
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return MemoryDocumentStore(clock=clock)


@pytest.fixture
def app_settings():
    return Settings(_env_file=None, store_backend="memory", reconcile_enabled=False)
