"""
Utilidades puras de fechas para el ingreso de rosters.

El cliente envia fechas como ISO (YYYY-MM-DD) o como timestamps ISO8601
con zona (p.ej. 2024-01-05T00:00:00Z). Se normalizan aqui para no
repetir la logica en el pipeline.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional


def utc_now() -> datetime:
    """Retorna la hora actual en UTC, como datetime aware."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normaliza datetime a UTC (aware). Los naive se asumen UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Convierte un valor a datetime UTC.

    Acepta datetime, date o string ISO8601 (incluye sufijo 'Z').
    Retorna None si el valor esta vacio o no es interpretable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None

    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(raw))
    except ValueError:
        return None


def parse_date(value: Any) -> Optional[date]:
    """
    Convierte un valor a date (dia calendario).

    Para timestamps con zona se toma la fecha en UTC, igual que el
    cliente al serializar isoDate.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value).date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    raw = value.strip()
    if len(raw) == 10:
        try:
            return date.fromisoformat(raw)
        except ValueError:
            return None

    parsed = parse_datetime(raw)
    return parsed.date() if parsed else None
