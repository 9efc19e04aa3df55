# backend/focus_challenge/services/challenge/repository.py
# Lecture/écriture du document singleton `settings/challenge` (création paresseuse des valeurs par défaut).

from __future__ import annotations

import logging
from typing import Any, Optional

from focus_challenge.core.exceptions import StaleCurrentDayError
from focus_challenge.core.settings import Settings, get_settings
from focus_challenge.models.challenge_settings import (
    SETTINGS_COLLECTION,
    SETTINGS_DOC_ID,
    ChallengeSettings,
)
from focus_challenge.store.base import SERVER_TIMESTAMP, DocumentStore

logger = logging.getLogger(__name__)


class ChallengeSettingsRepository:
    """Accès au document de réglages du challenge.

    Description:
        - `load()` crée le document par défaut s'il est absent (jamais d'état bloqué)
        - `save()` réécrit tous les champs (tableau `challenge_days` compris), avec
          une écriture conditionnelle quand `expect` est fourni
    """

    def __init__(self, store: DocumentStore, app_settings: Optional[Settings] = None):
        self.store = store
        self.app_settings = app_settings or get_settings()

    def default_settings(self) -> ChallengeSettings:
        return ChallengeSettings(
            day_duration=self.app_settings.default_day_duration_hours,
            trial_enabled=self.app_settings.default_trial_enabled,
        )

    async def find(self) -> Optional[ChallengeSettings]:
        doc = await self.store.get_document(SETTINGS_COLLECTION, SETTINGS_DOC_ID)
        return ChallengeSettings.from_mongo(doc)

    async def load(self) -> ChallengeSettings:
        """Retourne les réglages, en créant les valeurs par défaut si besoin."""
        settings = await self.find()
        if settings is not None:
            return settings

        logger.info("No challenge settings found, creating defaults")
        defaults = self.default_settings()
        await self.store.set_document(
            SETTINGS_COLLECTION,
            SETTINGS_DOC_ID,
            {**defaults.to_document(), "created_at": SERVER_TIMESTAMP, "updated_at": SERVER_TIMESTAMP},
        )
        return await self.find() or defaults

    async def save(self, settings: ChallengeSettings, expect: Optional[dict[str, Any]] = None) -> None:
        """Persiste les réglages.

        Raises:
            StaleCurrentDayError: Si `expect` ne correspond plus au document stocké.
        """
        fields = {**settings.to_document(), "updated_at": SERVER_TIMESTAMP}
        written = await self.store.update_fields(SETTINGS_COLLECTION, SETTINGS_DOC_ID, fields, expect=expect)
        if written:
            return
        if expect is not None:
            stored = await self.find()
            raise StaleCurrentDayError(
                expect.get("current_day", -1), stored.current_day if stored else None
            )
        # Document supprimé entre-temps : on le recrée
        await self.store.set_document(
            SETTINGS_COLLECTION,
            SETTINGS_DOC_ID,
            {**fields, "created_at": SERVER_TIMESTAMP},
        )
