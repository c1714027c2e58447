"""
AuditLogger - Logging estructurado por request.

Proporciona loggers hijos con contexto (request_id, ruta, usuario) para
seguir un upload de punta a punta:
- api_logs/: Logs de la API por dia (solo registros con contexto "api")
"""
import secrets
from datetime import datetime
from pathlib import Path

from loguru import logger


class AuditLogger:
    """
    Gestor de logs de auditoria de la API.

    Uso:
        # Al inicio de la app
        AuditLogger.initialize()

        # En un caso de uso
        log = AuditLogger.request_logger("roster-upload", owner_id=owner_id)
        log.info("Iniciando upload")
    """

    # Rutas base para los logs
    BASE_LOG_DIR = Path("logs")
    API_LOG_DIR = BASE_LOG_DIR / "api_logs"

    # Formatos de timestamp
    FILE_TIMESTAMP_FORMAT = "%Y-%m-%d"

    _initialized: bool = False

    @classmethod
    def initialize(cls) -> None:
        """
        Inicializa la carpeta de logs y el sink de la API.
        Debe llamarse al inicio de la aplicacion.
        """
        if cls._initialized:
            return

        cls.API_LOG_DIR.mkdir(parents=True, exist_ok=True)

        today = datetime.now().strftime(cls.FILE_TIMESTAMP_FORMAT)
        api_log_file = cls.API_LOG_DIR / f"api_{today}.log"

        logger.add(
            str(api_log_file),
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | [{extra[request_id]}] {extra[route]} | {message}",
            filter=lambda record: record["extra"].get("context") == "api",
            rotation="1 day",
            retention="30 days",
            level="DEBUG"
        )

        cls._initialized = True
        logger.info("AuditLogger inicializado")

    @staticmethod
    def new_request_id() -> str:
        """Genera un identificador corto de request (6 caracteres)."""
        return secrets.token_hex(3).upper()

    @classmethod
    def request_logger(cls, route: str, **context):
        """
        Crea un logger hijo ligado a un request.

        Args:
            route: Nombre logico de la ruta (p.ej. 'roster-upload')
            **context: Contexto adicional (owner_id, crew_id, ...)

        Returns:
            Logger de loguru con el contexto ligado
        """
        return logger.bind(
            context="api",
            request_id=cls.new_request_id(),
            route=route,
            **context
        )
