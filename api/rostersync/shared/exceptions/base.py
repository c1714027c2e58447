"""
Excepción base para todas las excepciones personalizadas de la aplicación.

El handler global de main.py serializa cualquier AppException con el
formato {error, message, details}.
"""
from typing import Optional, Dict, Any


class AppException(Exception):
    """
    Excepción base de la aplicación.
    Todas las excepciones personalizadas deben heredar de esta clase.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Args:
            message: Mensaje seguro para mostrar al cliente
            status_code: Código de estado HTTP
            error_code: Código de error estable (p.ej. VALIDATION_ERROR)
            details: Detalles adicionales del error
        """
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_response(self) -> Dict[str, Any]:
        """Cuerpo JSON de la respuesta de error."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }
