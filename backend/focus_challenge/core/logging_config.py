"""Configuration du système de logging centralisé."""

import json
import logging
import logging.handlers
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel

from focus_challenge.core.settings import get_settings

ROOT_LOGGER_NAME = "focus_challenge"


class CustomJSONEncoder(json.JSONEncoder):
    """Encodeur JSON personnalisé pour gérer datetime et modèles Pydantic."""

    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        elif isinstance(obj, BaseModel):
            return obj.model_dump(mode="json")
        return super().default(obj)


class DataLogger:
    """Journal JSON des données volumineuses (plannings générés), une ligne par entrée.

    Description:
        Un fichier par jour : `<logs_dir>/YYYY-MM-DD-data.jsonl`. Chaque ligne est un
        objet `{datetime, calling_context, user_data, data}` autonome, lisible
        avec `jq` ou ligne à ligne.
    """

    def __init__(self, logs_dir: str = "logs"):
        self.logs_dir = Path(logs_dir)
        self.logs_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, day: datetime) -> Path:
        return self.logs_dir / f"{day:%Y-%m-%d}-data.jsonl"

    def log_data(
        self,
        calling_context: str,
        data: Dict[str, Any],
        user_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        now = datetime.now()
        line = json.dumps(
            {
                "datetime": now.isoformat(),
                "calling_context": calling_context,
                "user_data": user_data or {},
                "data": data,
            },
            cls=CustomJSONEncoder,
        )
        with open(self.path_for(now), "a", encoding="utf-8") as f:
            f.write(line + "\n")


def _rotating_handler(filename: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=filename,
        when="midnight",
        interval=1,
        encoding="utf-8"
    )
    handler.suffix = "%Y-%m-%d"
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> tuple[logging.Logger, logging.Logger, DataLogger]:
    """Configure le système de logging avec rotation quotidienne.

    Description:
        Attache deux handlers au logger racine du package (`focus_challenge`) :
        `generic.log` (INFO+) et `errors.log` (ERROR+). Les modules loguent via
        `logging.getLogger(__name__)` et remontent par propagation.

    Returns:
        tuple: (logger_generic, logger_errors, data_logger)
    """
    settings = get_settings()
    logs_dir = Path(settings.logs_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    # Nettoyage des logs anciens
    cleanup_old_logs(logs_dir, settings.log_retention_days)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.INFO)

    if not root_logger.handlers:  # Éviter les doublons
        root_logger.addHandler(_rotating_handler(logs_dir / "generic.log", logging.INFO, formatter))
        root_logger.addHandler(_rotating_handler(logs_dir / "errors.log", logging.ERROR, formatter))

    generic_logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.generic")
    error_logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.errors")

    data_logger = DataLogger(str(logs_dir))

    return generic_logger, error_logger, data_logger


def cleanup_old_logs(logs_dir: Path, retention_days: int = 30) -> None:
    """Supprime les logs plus anciens que retention_days.

    Description:
        Les fichiers rotés portent un suffixe `YYYY-MM-DD` (`generic.log.2026-01-31`),
        les dumps JSON un préfixe (`2026-01-31-data.jsonl`).
    """
    cutoff_str = (datetime.now() - timedelta(days=retention_days)).strftime("%Y-%m-%d")

    for file_path in logs_dir.iterdir():
        name = file_path.name
        if name.endswith("-data.jsonl"):
            date_part = name[:10]
        elif name.startswith(("generic.log.", "errors.log.")):
            date_part = name.rsplit(".", 1)[-1]
        else:
            continue
        if len(date_part) == 10 and date_part < cutoff_str:
            try:
                file_path.unlink()
            except OSError:
                continue


# Instance globale (lazy initialization)
_loggers: Optional[tuple[logging.Logger, logging.Logger, DataLogger]] = None


def get_loggers() -> tuple[logging.Logger, logging.Logger, DataLogger]:
    """Retourne les loggers configurés (singleton)."""
    global _loggers
    if _loggers is None:
        _loggers = setup_logging()
    return _loggers
