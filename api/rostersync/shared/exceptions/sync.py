"""
Excepciones del proceso de sincronizacion de rosters.

- ConflictRetryException: carrera con otro upload concurrente (reintentable)
- PersistenceFailureException: error del almacenamiento, aborta todo el batch
- UploadTimeoutException: el upload supero el tiempo maximo permitido
"""
from typing import Optional, Dict, Any

from rostersync.shared.exceptions.base import AppException


class ConflictRetryException(AppException):
    """
    Conflicto transitorio detectado durante el upload.

    El orquestador la reintenta de forma transparente; si se agotan los
    reintentos se devuelve al cliente como fallo transitorio (503).
    """

    def __init__(self, attempts: int, reason: Optional[str] = None):
        details: Dict[str, Any] = {"attempts": attempts}
        super().__init__(
            message="Conflicto con otra sincronizacion en curso, reintente mas tarde",
            status_code=503,
            error_code="CONFLICT_RETRY",
            details=details
        )
        self.attempts = attempts
        self.reason = reason


class PersistenceFailureException(AppException):
    """
    Fallo de persistencia durante el upload.

    El mensaje es generico; el detalle interno solo se incluye si
    se solicita explicitamente (EXPOSE_ERROR_DETAILS).
    """

    def __init__(self, internal_detail: Optional[str] = None, expose_detail: bool = False):
        details = {"internal": internal_detail} if expose_detail and internal_detail else None
        super().__init__(
            message="No se pudo sincronizar el roster",
            status_code=500,
            error_code="PERSISTENCE_FAILURE",
            details=details
        )
        self.internal_detail = internal_detail


class UploadTimeoutException(AppException):
    """El upload excedio el timeout configurado y fue revertido."""

    def __init__(self, timeout: float):
        super().__init__(
            message=f"La sincronizacion excedio el tiempo maximo ({timeout}s)",
            status_code=503,
            error_code="UPLOAD_TIMEOUT",
            details={"timeout_seconds": timeout}
        )
        self.timeout = timeout
