"""
Utilidades de seguridad: verificacion de tokens de acceso.

Los tokens los emite el servicio de autenticacion; aqui solo se
validan para obtener el identificador del propietario (claim `sub`).
"""
from typing import Dict, Any
from jose import JWTError, jwt

from rostersync.core.config import settings
from rostersync.shared.exceptions.auth import (
    InvalidCredentialsException,
    TokenExpiredException,
    UnauthorizedException,
)


class SecurityService:
    """Servicio para operaciones de seguridad."""

    @staticmethod
    def decode_access_token(token: str) -> Dict[str, Any]:
        """
        Decodifica y valida un token JWT.

        Args:
            token: Token JWT a decodificar

        Returns:
            Dict[str, Any]: Datos del token decodificado

        Raises:
            InvalidCredentialsException: Si el token es inválido
            TokenExpiredException: Si el token ha expirado
        """
        try:
            payload = jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[settings.ALGORITHM]
            )
            return payload
        except jwt.ExpiredSignatureError:
            raise TokenExpiredException()
        except JWTError:
            raise InvalidCredentialsException()

    @classmethod
    def get_owner_id(cls, token: str) -> str:
        """
        Extrae el identificador opaco del propietario desde el token.

        Raises:
            UnauthorizedException: Si el token no trae claim `sub`
        """
        payload = cls.decode_access_token(token)
        owner_id = payload.get("sub")
        if not owner_id:
            raise UnauthorizedException("Token sin identificador de usuario")
        return str(owner_id)


# Instancia global del servicio de seguridad
security_service = SecurityService()
