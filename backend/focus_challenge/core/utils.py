# backend/focus_challenge/core/utils.py
# Fonctions temporelles basiques (UTC aware) et conversions d'horodatages.

import datetime as dt

ONE_HOUR = dt.timedelta(hours=1)
ONE_DAY = dt.timedelta(hours=24)


def utcnow() -> dt.datetime:
    """Date/heure UTC (timezone-aware).

    Description:
        Retourne `datetime.now(timezone.utc)` avec timezone UTC attachée. Utilisé pour
        tous les horodatages persistés et toutes les comparaisons du moteur de planning.

    Returns:
        datetime.datetime: Timestamp UTC (aware).
    """
    return dt.datetime.now(dt.timezone.utc)


def ensure_aware(value: dt.datetime) -> dt.datetime:
    """Rendre un datetime timezone-aware.

    Description:
        MongoDB renvoie des datetimes naïfs (UTC implicite) si le client n'est pas
        configuré en `tz_aware`. Un datetime naïf est interprété comme UTC.

    Args:
        value (datetime): Datetime naïf ou aware.

    Returns:
        datetime: Datetime aware.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value
