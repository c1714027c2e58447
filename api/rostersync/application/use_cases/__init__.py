"""
Casos de uso de la aplicacion.
"""
from .roster_upload_use_cases import RosterUploadUseCases
from .roster_query_use_cases import RosterQueryUseCases

__all__ = ["RosterUploadUseCases", "RosterQueryUseCases"]
