"""
Script para inicializar la base de datos.

Crea las tablas del roster si no existen. En produccion se prefiere
`alembic upgrade head`; este script es para entornos de desarrollo.
"""
import asyncio
from loguru import logger

import rostersync.infrastructure.database  # noqa: F401  (registra los modelos)
from rostersync.core.config import settings
from rostersync.infrastructure.database.session import init_db, close_db


async def main():
    """Función principal para inicializar la base de datos."""
    logger.info(f"Inicializando base de datos ({settings.ENVIRONMENT})...")

    try:
        await init_db()
        logger.success("Base de datos inicializada correctamente")
    except Exception as e:
        logger.error(f"Error al inicializar base de datos: {e}")
        raise
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
