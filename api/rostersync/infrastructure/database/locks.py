"""
Locks transaccionales por (periodo, fecha).

Dos uploads que tocan la misma fecha del mismo periodo se serializan
con pg_advisory_xact_lock: el lock se libera solo al terminar la
transaccion (commit o rollback), nunca hay que soltarlo a mano.

En SQLite no existe el equivalente; alli la transaccion de escritura ya
toma el lock global de la base al hacer el upsert del periodo.
"""
import hashlib
from datetime import date

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession


_ADVISORY_LOCK_SQL = text("SELECT pg_advisory_xact_lock(:key)")


def date_lock_key(period_id: int, day: date) -> int:
    """
    Clave estable (bigint con signo) para el advisory lock.

    Se deriva de sha256 para que sea igual entre procesos y reinicios;
    hash() de Python cambia con PYTHONHASHSEED.
    """
    material = f"roster-day:{period_id}:{day.isoformat()}".encode("utf-8")
    digest = hashlib.sha256(material).digest()
    return int.from_bytes(digest[:8], byteorder="big", signed=True)


def supports_advisory_locks(session: AsyncSession) -> bool:
    """True si la sesion esta ligada a PostgreSQL."""
    return session.bind is not None and session.bind.dialect.name == "postgresql"


async def acquire_date_lock(session: AsyncSession, period_id: int, day: date) -> bool:
    """
    Toma el lock de la fecha dentro de la transaccion actual.

    Returns:
        True si se ejecuto el advisory lock, False si el dialecto no lo soporta.
    """
    if not supports_advisory_locks(session):
        return False

    await session.execute(_ADVISORY_LOCK_SQL, {"key": date_lock_key(period_id, day)})
    return True
