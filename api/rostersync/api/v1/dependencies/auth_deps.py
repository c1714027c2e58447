"""
Dependencias de autenticacion.
"""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from rostersync.core.security import security_service
from rostersync.shared.exceptions.auth import UnauthorizedException


bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_owner_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> str:
    """
    Obtiene el owner_id (claim `sub`) del bearer token.

    Raises:
        UnauthorizedException: Si no se envio token
        InvalidCredentialsException / TokenExpiredException: Token invalido
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedException("Token de acceso requerido")
    return security_service.get_owner_id(credentials.credentials)
