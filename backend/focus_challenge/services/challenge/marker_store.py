# backend/focus_challenge/services/challenge/marker_store.py
# Marqueur local "dernière réconciliation" (clé/valeur) : fichier JSON ou mémoire.

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def marker_key(challenge_id: Optional[str]) -> str:
    """Clé du marqueur d'avancement quotidien (`lastDayAdvancement_<id|default>`)."""
    return f"lastDayAdvancement_{challenge_id or 'default'}"


class MarkerStore(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...


class MemoryMarkerStore(MarkerStore):
    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class JsonFileMarkerStore(MarkerStore):
    """Marqueurs persistés dans un petit fichier JSON (survit aux redémarrages).

    Description:
        Un fichier absent ou illisible est traité comme vide : au pire, la
        réconciliation du jour est rejouée (idempotente grâce au compare-and-swap).
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Marker file {self.path} unreadable, starting empty: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        tmp.replace(self.path)
