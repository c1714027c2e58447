"""
Helpers dependientes del dialecto SQL.

Produccion corre en PostgreSQL y los tests en SQLite (aiosqlite); ambos
soportan INSERT ... ON CONFLICT DO UPDATE ... RETURNING, pero SQLAlchemy
expone la construccion en el modulo de cada dialecto.
"""
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def dialect_name(session: AsyncSession) -> str:
    """Nombre del dialecto de la sesion ('postgresql', 'sqlite', ...)."""
    return session.bind.dialect.name


def upsert_insert(session: AsyncSession, table):
    """
    Retorna un INSERT con soporte de on_conflict_do_update para la sesion.

    Raises:
        RuntimeError: Si el dialecto no soporta upserts nativos
    """
    name = dialect_name(session)
    try:
        return _INSERTS[name](table)
    except KeyError:
        raise RuntimeError(f"Dialecto sin soporte de upsert: {name}") from None
