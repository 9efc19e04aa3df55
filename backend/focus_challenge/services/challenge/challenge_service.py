# backend/focus_challenge/services/challenge/challenge_service.py
# Service du challenge : charge les réglages, applique une transition pure, persiste puis exécute les effets sur les tâches.

from __future__ import annotations

import datetime as dt
import logging
from typing import Callable, Optional

from focus_challenge.core.logging_config import DataLogger
from focus_challenge.core.settings import Settings, get_settings
from focus_challenge.core.utils import ensure_aware, utcnow
from focus_challenge.models.challenge_settings import ChallengeSettings
from focus_challenge.services.challenge import state_machine as sm
from focus_challenge.services.challenge.effects import TaskEffects
from focus_challenge.services.challenge.repository import ChallengeSettingsRepository
from focus_challenge.services.challenge.schedule import challenge_duration_days, compute_current_day
from focus_challenge.store.base import DocumentStore

logger = logging.getLogger(__name__)


class ChallengeService:
    """Orchestration des transitions du challenge.

    Description:
        Pour chaque opération : lecture des réglages (création paresseuse), calcul
        de la transition (fonction pure), écriture des réglages (conditionnelle pour
        les changements de jour), puis un batch de tâches. L'écriture des réglages
        fait foi : un échec du batch est logué et relancé, sans rollback.

    Args:
        store (DocumentStore): Store documentaire.
        clock (Callable[[], datetime]): Horloge injectée (UTC aware).
        app_settings (Settings | None): Configuration applicative.
        data_logger (DataLogger | None): Journal JSON des plannings générés.
    """

    def __init__(
        self,
        store: DocumentStore,
        clock: Callable[[], dt.datetime] = utcnow,
        app_settings: Optional[Settings] = None,
        data_logger: Optional[DataLogger] = None,
    ):
        self.store = store
        self.clock = clock
        self.app_settings = app_settings or get_settings()
        self.repository = ChallengeSettingsRepository(store, self.app_settings)
        self.effects = TaskEffects(store)
        self.data_logger = data_logger

    @property
    def default_day_count(self) -> int:
        # jours 1..N + jour d'essai
        return self.app_settings.default_total_days + 1

    async def get_settings(self) -> ChallengeSettings:
        return await self.repository.load()

    async def _apply(self, transition: sm.Transition, action: str) -> ChallengeSettings:
        if not transition.changed:
            logger.info(f"{action}: no change")
            return transition.settings

        await self.repository.save(transition.settings, expect=transition.expect)
        logger.info(
            f"{action}: status={transition.settings.status} current_day={transition.settings.current_day}"
        )
        await self.effects.execute(transition.commands)
        return transition.settings

    def _log_schedule(self, context: str, settings: ChallengeSettings) -> None:
        if self.data_logger is None:
            return
        self.data_logger.log_data(
            context,
            {
                "start_date": settings.start_date,
                "scheduled_start_date": settings.scheduled_start_date,
                "scheduled_end_date": settings.scheduled_end_date,
                "day_duration": settings.day_duration,
                "challenge_days": settings.challenge_days,
            },
        )

    # ------------------------------------------------------------------ cycle de vie
    async def start_challenge(self, day_count: Optional[int] = None) -> ChallengeSettings:
        """Démarre le challenge maintenant (planning régénéré)."""
        settings = await self.get_settings()
        result = await self._apply(
            sm.start(settings, self.clock(), day_count, self.default_day_count), "start_challenge"
        )
        self._log_schedule("start_challenge", result)
        return result

    async def stop_challenge(self) -> ChallengeSettings:
        settings = await self.get_settings()
        return await self._apply(sm.stop(settings, self.clock()), "stop_challenge")

    async def pause_challenge(self) -> ChallengeSettings:
        settings = await self.get_settings()
        return await self._apply(sm.pause(settings, self.clock()), "pause_challenge")

    async def resume_challenge(self) -> ChallengeSettings:
        settings = await self.get_settings()
        result = await self._apply(sm.resume(settings, self.clock()), "resume_challenge")
        self._log_schedule("resume_challenge", result)
        return result

    # ------------------------------------------------------------------ jours
    async def advance_to_next_day(self, observed_day: Optional[int] = None) -> ChallengeSettings:
        """Avance d'un jour depuis `observed_day` (jour stocké si omis).

        Raises:
            ChallengeStateError: Challenge inactif ou en pause.
            StaleCurrentDayError: Le jour stocké a changé depuis l'observation.
        """
        settings = await self.get_settings()
        observed = settings.current_day if observed_day is None else observed_day
        return await self._apply(
            sm.advance_to_next_day(settings, observed, self.clock()), "advance_to_next_day"
        )

    async def go_to_previous_day(self, observed_day: Optional[int] = None) -> ChallengeSettings:
        settings = await self.get_settings()
        observed = settings.current_day if observed_day is None else observed_day
        return await self._apply(
            sm.go_to_previous_day(settings, observed, self.clock()), "go_to_previous_day"
        )

    async def set_current_day(self, target_day: int, observed_day: Optional[int] = None) -> ChallengeSettings:
        settings = await self.get_settings()
        observed = settings.current_day if observed_day is None else observed_day
        return await self._apply(
            sm.set_current_day(settings, observed, target_day, self.clock()), "set_current_day"
        )

    async def get_current_day(self) -> dict:
        """Jour stocké et jour déduit du temps écoulé (figé à `paused_at` en pause)."""
        settings = await self.get_settings()
        computed = 0
        if settings.is_active and settings.start_date is not None:
            reference = settings.paused_at if settings.is_paused and settings.paused_at else self.clock()
            computed = compute_current_day(
                settings.start_date, settings.day_duration, reference, settings.max_day
            )
        return {
            "current_day": settings.current_day,
            "computed_day": computed,
            "max_day": settings.max_day,
            "status": settings.status,
        }

    # ------------------------------------------------------------------ planification
    async def check_and_start_challenge(self) -> bool:
        """Démarre le challenge si sa date planifiée est atteinte. Retourne True si démarré."""
        settings = await self.get_settings()
        transition = sm.check_and_start(settings, self.clock(), self.default_day_count)
        if not transition.changed:
            return False
        result = await self._apply(transition, "check_and_start_challenge")
        self._log_schedule("check_and_start_challenge", result)
        return True

    async def check_and_end_challenge(self) -> bool:
        """Arrête le challenge si sa date de fin planifiée est atteinte. Retourne True si arrêté."""
        settings = await self.get_settings()
        transition = sm.check_and_end(settings, self.clock())
        if not transition.changed:
            return False
        await self._apply(transition, "check_and_end_challenge")
        return True

    async def set_schedule(
        self,
        scheduled_start: dt.datetime,
        total_days: Optional[int] = None,
        scheduled_end: Optional[dt.datetime] = None,
        trial_enabled: bool = True,
        day_duration: int = 24,
    ) -> ChallengeSettings:
        """Planifie un démarrage futur.

        Args:
            scheduled_start (datetime): Début planifié (dans le futur).
            total_days (int | None): Jours de challenge hors essai ; déduit de
                `scheduled_end` s'il est omis.
            scheduled_end (datetime | None): Fin souhaitée (mode historique par dates).
            trial_enabled (bool): Jour 0 (essai) activé.
            day_duration (int): Durée d'un jour en heures.

        Returns:
            ChallengeSettings: Réglages planifiés.
        """
        scheduled_start = ensure_aware(scheduled_start)
        if total_days is None:
            if scheduled_end is None:
                total_days = self.app_settings.default_total_days
            else:
                total_days = challenge_duration_days(scheduled_start, ensure_aware(scheduled_end))

        settings = await self.get_settings()
        result = await self._apply(
            sm.set_schedule(settings, self.clock(), scheduled_start, total_days, trial_enabled, day_duration),
            "set_schedule",
        )
        self._log_schedule("set_schedule", result)
        return result
