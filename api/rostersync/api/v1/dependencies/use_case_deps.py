"""
Dependencias para inyeccion de casos de uso.
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rostersync.application.use_cases.roster_upload_use_cases import RosterUploadUseCases
from rostersync.application.use_cases.roster_query_use_cases import RosterQueryUseCases
from rostersync.infrastructure.database.session import get_db, get_session_factory


def get_roster_upload_use_cases(
    session_factory: async_sessionmaker = Depends(get_session_factory)
) -> RosterUploadUseCases:
    """
    Dependencia para obtener el caso de uso de upload.

    Recibe la fabrica de sesiones: el upload maneja su propia transaccion.
    """
    return RosterUploadUseCases(session_factory)


async def get_roster_query_use_cases(
    db: AsyncSession = Depends(get_db)
) -> RosterQueryUseCases:
    """
    Dependencia para obtener los casos de uso de consulta.

    Args:
        db: Sesion de base de datos

    Returns:
        RosterQueryUseCases: Instancia de casos de uso de consulta
    """
    return RosterQueryUseCases(db)
