from dataclasses import dataclass
from typing import Optional

import jwt
import structlog
from fastapi_users.jwt import decode_jwt

from inventory_api.core.config import ConfigurationError
from inventory_api.services.credentials import CredentialStore
from inventory_api.services.tokens import TOKEN_AUDIENCE, USER_ID_CLAIM

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Identity:
    user_id: int
    username: str


def extract_token(authorization: Optional[str]) -> Optional[str]:
    """Accept `Bearer <token>` or the bare token echoed by the login endpoint."""
    if not authorization:
        return None
    parts = authorization.strip().split()
    if not parts:
        return None
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    if len(parts) == 1:
        return parts[0]
    return None


class SessionValidator:
    """Resolves an Authorization header to the identity of an existing user.

    Stateless: every call verifies the signature and expiry again, with no
    clock-skew leeway. Anything short of a valid token for a user that still
    exists resolves to None.
    """

    def __init__(self, secret: str, credentials: CredentialStore):
        if not (secret or "").strip():
            raise ConfigurationError("JWT secret key is missing")
        self._secret = secret
        self._credentials = credentials

    def read_user_id(self, token: str) -> Optional[int]:
        try:
            claims = decode_jwt(token, self._secret, [TOKEN_AUDIENCE])
        except jwt.ExpiredSignatureError:
            logger.debug("access_token_expired")
            return None
        except jwt.PyJWTError as exc:
            logger.debug("access_token_rejected", error=str(exc))
            return None

        if "exp" not in claims:
            return None
        try:
            return int(claims[USER_ID_CLAIM])
        except (KeyError, TypeError, ValueError):
            return None

    async def resolve(self, authorization: Optional[str]) -> Optional[Identity]:
        token = extract_token(authorization)
        if token is None:
            return None

        user_id = self.read_user_id(token)
        if user_id is None:
            return None

        user = await self._credentials.get_user_by_id(user_id)
        if user is None:
            logger.info("access_token_user_missing", user_id=user_id)
            return None
        return Identity(user_id=user.id, username=user.username)
