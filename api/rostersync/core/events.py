"""
Manejadores de eventos de inicio y cierre de la aplicacion.
"""
from typing import Callable
from fastapi import FastAPI
from loguru import logger

from rostersync.core.config import settings
from rostersync.infrastructure.database.session import init_db, close_db
from rostersync.shared.utils.audit_logger import AuditLogger


DEFAULT_SECRET_KEY = "change-this-secret-key-in-production"


def startup_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de inicio de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de inicio
    """
    async def startup() -> None:
        """Inicializa recursos al inicio de la aplicacion."""
        try:
            logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
            logger.info(f"Entorno: {settings.ENVIRONMENT}")

            # Validar configuracion critica
            _validate_config()

            # Inicializar base de datos (crea tablas si no existen)
            await init_db()
            logger.info("Base de datos inicializada")

            # Inicializar sistema de auditoria
            AuditLogger.initialize()
            logger.info("Sistema de auditoria inicializado")

            # Configurar logging adicional
            logger.add(
                settings.LOG_FILE,
                rotation="500 MB",
                retention="10 days",
                level=settings.LOG_LEVEL
            )

            logger.success("Aplicacion iniciada correctamente")

        except Exception as e:
            logger.error(f"Error durante startup: {e}")
            logger.exception("Detalle del error:")
            raise

    return startup


def _validate_config() -> None:
    """Valida que la configuracion critica este presente."""
    warnings = []

    if settings.SECRET_KEY == DEFAULT_SECRET_KEY:
        warnings.append("SECRET_KEY por defecto - los tokens no son seguros")

    if settings.EXPOSE_ERROR_DETAILS and not settings.is_development:
        warnings.append("EXPOSE_ERROR_DETAILS activo fuera de desarrollo")

    if settings.UPLOAD_MAX_RETRIES < 0:
        raise ValueError("UPLOAD_MAX_RETRIES no puede ser negativo")

    if settings.UPLOAD_TIMEOUT_SECONDS <= 0:
        raise ValueError("UPLOAD_TIMEOUT_SECONDS debe ser mayor a 0")

    # Mostrar advertencias
    for warning in warnings:
        logger.warning(f"CONFIG: {warning}")


def shutdown_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de cierre de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de cierre
    """
    async def shutdown() -> None:
        """Libera recursos al cerrar la aplicacion."""
        logger.info("Cerrando aplicacion...")

        # Cerrar conexiones de base de datos
        await close_db()
        logger.info("Conexiones de base de datos cerradas")

        logger.success("Aplicacion cerrada correctamente")

    return shutdown
