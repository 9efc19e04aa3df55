# backend/focus_challenge/services/challenge/reconciliation.py
# Boucle de réconciliation : démarrage/arrêt planifiés et alignement du jour courant sur la date IST, toutes les 60 s.

"""
Boucle de réconciliation du challenge.

Un tick :
1. lit les réglages (lecture directe ; dernier snapshot reçu par abonnement si le store ne répond pas)
2. inactif avec début planifié -> tentative de démarrage ; inactif sinon -> rien
3. actif -> tentative d'arrêt planifié
4. en pause -> pas de logique de jour
5-6. date IST du jour ; si le marqueur local vaut déjà cette date -> rien
7. jour attendu = jour planifié à cette date IST (sinon jour stocké)
8. en retard -> avance d'un jour à la fois ; 9. en avance -> saut direct en arrière
10. en cas de changement, le marqueur reçoit la date du jour

Les erreurs de chaque étape sont loguées puis ignorées : le tick suivant réessaie.
Un jeton d'annulation est vérifié avant chaque étape ; `stop()` ne coupe pas un
appel au store déjà en cours, son résultat est simplement ignoré.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from focus_challenge.models.challenge_settings import SETTINGS_COLLECTION, SETTINGS_DOC_ID, ChallengeSettings
from focus_challenge.services.challenge.challenge_service import ChallengeService
from focus_challenge.services.challenge.ist_calendar import expected_day_for, ist_date_string
from focus_challenge.services.challenge.marker_store import MarkerStore, marker_key

logger = logging.getLogger(__name__)

# Résultats d'un tick (utiles aux tests et aux logs)
TICK_CANCELLED = "cancelled"
TICK_ERROR = "error"
TICK_INACTIVE = "inactive"
TICK_WAITING = "waiting"
TICK_STARTED = "started"
TICK_ENDED = "ended"
TICK_PAUSED = "paused"
TICK_ALREADY_DONE = "already_reconciled"
TICK_IN_SYNC = "in_sync"
TICK_ADVANCED = "advanced"
TICK_REWOUND = "rewound"


class ReconciliationLoop:
    """Tâche asyncio périodique gardant `current_day` cohérent avec l'heure murale.

    Args:
        service (ChallengeService): Service du challenge (transitions + horloge).
        marker_store (MarkerStore): Stockage du marqueur `lastDayAdvancement_<id>`.
        challenge_id (str | None): Identifiant du challenge (clé du marqueur).
        interval (float): Période en secondes (60 par défaut).
    """

    def __init__(
        self,
        service: ChallengeService,
        marker_store: MarkerStore,
        challenge_id: Optional[str] = None,
        interval: float = 60,
    ):
        self.service = service
        self.marker_store = marker_store
        self.marker_key = marker_key(challenge_id)
        self.interval = interval
        self._cancelled = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._unsubscribe = None
        self._snapshot: Optional[ChallengeSettings] = None

    # ------------------------------------------------------------------ cycle de vie
    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Démarre la boucle (un tick immédiat puis un par période)."""
        if self.running:
            return
        self._cancelled.clear()
        self._unsubscribe = self.service.store.subscribe(
            SETTINGS_COLLECTION, SETTINGS_DOC_ID, self._on_settings
        )
        self._task = asyncio.create_task(self._run(), name="challenge-reconciliation")
        logger.info(f"Reconciliation loop started (interval={self.interval}s)")

    async def stop(self) -> None:
        """Arrête la boucle : jeton d'annulation levé, timer annulé, abonnement fermé."""
        self._cancelled.set()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Reconciliation loop stopped")

    def _on_settings(self, doc: Optional[dict[str, Any]]) -> None:
        try:
            self._snapshot = ChallengeSettings.from_mongo(doc)
        except ValueError as e:
            logger.error(f"Invalid settings snapshot ignored: {e}")
            self._snapshot = None

    async def _run(self) -> None:
        while not self._cancelled.is_set():
            try:
                await self.tick()
            except Exception:
                logger.exception("Reconciliation: unexpected error, retrying next tick")
            try:
                await asyncio.wait_for(self._cancelled.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue

    # ------------------------------------------------------------------ tick
    async def _load(self) -> ChallengeSettings:
        # Lecture fraîche à chaque tick : un change stream mort ne doit pas figer la boucle
        try:
            return await self.service.get_settings()
        except Exception:
            if self._snapshot is None:
                raise
            logger.warning("Reconciliation: settings read failed, using last subscription snapshot")
            return self._snapshot

    async def tick(self) -> str:
        """Exécute une passe de réconciliation et retourne son issue (`TICK_*`)."""
        if self._cancelled.is_set():
            return TICK_CANCELLED

        try:
            settings = await self._load()
        except Exception:
            logger.exception("Reconciliation: failed to load settings")
            return TICK_ERROR

        # Étape 2 : démarrage planifié
        if not settings.is_active:
            if settings.scheduled_start_date is None:
                return TICK_INACTIVE
            if self._cancelled.is_set():
                return TICK_CANCELLED
            try:
                started = await self.service.check_and_start_challenge()
            except Exception:
                logger.exception("Reconciliation: scheduled start failed")
                return TICK_ERROR
            return TICK_STARTED if started else TICK_WAITING

        # Étape 3 : arrêt planifié
        if self._cancelled.is_set():
            return TICK_CANCELLED
        try:
            if await self.service.check_and_end_challenge():
                return TICK_ENDED
        except Exception:
            logger.exception("Reconciliation: scheduled end failed")
            return TICK_ERROR

        # Étape 4
        if settings.is_paused:
            return TICK_PAUSED

        # Étapes 5-6
        today = ist_date_string(self.service.clock())
        try:
            last_done = self.marker_store.get(self.marker_key)
        except Exception:
            logger.exception("Reconciliation: marker read failed, treating as unset")
            last_done = None
        if last_done == today:
            return TICK_ALREADY_DONE

        # Étape 7
        expected = expected_day_for(settings.challenge_days, today, settings.current_day, settings.max_day)
        current = settings.current_day
        outcome = TICK_IN_SYNC

        # Étape 8 : un jour à la fois
        while expected > current:
            if self._cancelled.is_set():
                return TICK_CANCELLED
            try:
                updated = await self.service.advance_to_next_day(observed_day=current)
            except Exception:
                logger.exception(f"Reconciliation: advance from day {current} failed")
                return outcome if outcome != TICK_IN_SYNC else TICK_ERROR
            outcome = TICK_ADVANCED
            if not updated.is_active:
                break
            current = updated.current_day

        # Étape 9 : correction arrière directe
        if expected < current:
            if self._cancelled.is_set():
                return TICK_CANCELLED
            try:
                await self.service.set_current_day(expected, observed_day=current)
            except Exception:
                logger.exception(f"Reconciliation: rewind {current} -> {expected} failed")
                return TICK_ERROR
            outcome = TICK_REWOUND

        # Étape 10
        if outcome != TICK_IN_SYNC:
            try:
                self.marker_store.set(self.marker_key, today)
            except Exception:
                logger.exception(f"Reconciliation: failed to write marker {self.marker_key}")
            logger.info(f"Reconciliation: {outcome} to day {expected} for IST date {today}")
        return outcome
