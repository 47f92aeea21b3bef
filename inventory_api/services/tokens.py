import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import structlog
from fastapi_users.jwt import generate_jwt

from inventory_api.core.config import ConfigurationError
from inventory_api.db.database import utcnow
from inventory_api.services.credentials import CredentialStore

logger = structlog.get_logger(__name__)

ACCESS_TOKEN_LIFETIME_SECONDS = 60 * 60
REFRESH_TOKEN_LIFETIME = timedelta(days=7)
TOKEN_AUDIENCE = "inventory-api:auth"
USER_ID_CLAIM = "id"


@dataclass(frozen=True)
class TokenPair:
    user_id: int
    access_token: str
    refresh_token: str
    refresh_token_expiration: datetime


class TokenIssuer:
    def __init__(self, secret: str, credentials: CredentialStore):
        if not (secret or "").strip():
            raise ConfigurationError("JWT secret key is missing")
        self._secret = secret
        self._credentials = credentials

    def create_access_token(self, user_id: int) -> str:
        data = {USER_ID_CLAIM: str(user_id), "aud": TOKEN_AUDIENCE}
        return generate_jwt(data, self._secret, ACCESS_TOKEN_LIFETIME_SECONDS)

    async def issue_token_pair(self, user_id: int) -> TokenPair:
        """Persist a new 7-day refresh token and bundle it with a fresh access token.

        Persisting the refresh token is best effort: a store failure is logged
        by the credential store and the pair is still returned.
        """
        refresh_token = secrets.token_urlsafe(32)
        expiration = utcnow() + REFRESH_TOKEN_LIFETIME

        if not await self._credentials.insert_refresh_token(user_id, refresh_token, expiration):
            logger.warning("refresh_token_not_persisted", user_id=user_id)

        return TokenPair(
            user_id=user_id,
            access_token=self.create_access_token(user_id),
            refresh_token=refresh_token,
            refresh_token_expiration=expiration.replace(tzinfo=timezone.utc),
        )
