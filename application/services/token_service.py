"""
Token service - verifies bearer access tokens issued by the auth service
"""
from typing import Optional
import jwt

from core.config import settings
from core.exceptions import UnauthorizedException, TokenExpiredException
from core.logging_config import get_logger


logger = get_logger(__name__)


class TokenService:
    """
    Verifies HS256 access tokens.

    Tokens carry the caller's id in ``sub``; only ``type == "access"`` (or no
    type at all) is accepted.
    """

    def __init__(self, secret_key: Optional[str] = None, algorithm: Optional[str] = None):
        self._secret_key = secret_key or settings.SECRET_KEY
        self._algorithm = algorithm or settings.ALGORITHM

    def verify_access_token(self, token: str) -> str:
        """Return the caller's user id or raise."""
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm]
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredException()
        except jwt.PyJWTError as e:
            logger.warning("invalid_access_token", error=str(e))
            raise UnauthorizedException("Invalid access token")

        if payload.get("type", "access") != "access":
            raise UnauthorizedException("Wrong token type")

        user_id = payload.get("sub")
        if not user_id:
            raise UnauthorizedException("Token has no subject")
        return str(user_id)
