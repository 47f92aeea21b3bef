import asyncio
from datetime import datetime
from typing import Optional

import structlog
from fastapi_users.password import PasswordHelper
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from inventory_api.core.results import Failure, FailureKind, Ok, Result
from inventory_api.db.database import is_unique_violation, utcnow
from inventory_api.db.users import RefreshToken, User

logger = structlog.get_logger(__name__)


class CredentialStore:
    """Owns the users and refresh_tokens tables."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        timeout_seconds: float,
        password_helper: Optional[PasswordHelper] = None,
    ):
        self._sessions = session_maker
        self._timeout = timeout_seconds
        self.password_helper = password_helper or PasswordHelper()

    async def create_user(self, first_name: str, last_name: str, username: str, raw_password: str) -> Result[int]:
        """Hash the password and insert the user.

        A duplicate username is the only failure reported as a conflict; every
        other store failure is logged and reported as internal.
        """
        if not username or not raw_password:
            return Failure(FailureKind.BAD_REQUEST, "username and password are required")

        user = User(
            first_name=first_name,
            last_name=last_name,
            username=username,
            password=self.password_helper.hash(raw_password),
        )
        try:
            async with asyncio.timeout(self._timeout):
                async with self._sessions() as db:
                    db.add(user)
                    await db.commit()
                    await db.refresh(user)
        except IntegrityError as exc:
            if is_unique_violation(exc):
                logger.info("user_create_conflict", username=username)
                return Failure(FailureKind.CONFLICT, "username already exists")
            logger.error("user_create_failed", username=username, error=str(exc.orig))
            return Failure(FailureKind.INTERNAL, "creation failed")
        except (SQLAlchemyError, TimeoutError):
            logger.exception("user_create_failed", username=username)
            return Failure(FailureKind.INTERNAL, "creation failed")

        logger.info("user_created", user_id=user.id, username=username)
        return Ok(user.id)

    async def authenticate(self, username: str, raw_password: str) -> Optional[int]:
        """Return the user id for valid credentials, None otherwise.

        A missing user and a wrong password look the same to the caller: both
        paths run one hash operation and return None.
        """
        try:
            async with asyncio.timeout(self._timeout):
                async with self._sessions() as db:
                    res = await db.execute(select(User).where(User.username == username))
                    user = res.scalar_one_or_none()
        except (SQLAlchemyError, TimeoutError):
            logger.exception("user_lookup_failed", username=username)
            return None

        if user is None:
            # Comparable work to a real verification
            self.password_helper.hash(raw_password)
            return None

        verified, _ = self.password_helper.verify_and_update(raw_password, user.password)
        if not verified:
            return None
        return user.id

    async def get_user_by_id(self, user_id: Optional[int]) -> Optional[User]:
        if not user_id:
            return None
        try:
            async with asyncio.timeout(self._timeout):
                async with self._sessions() as db:
                    return await db.get(User, user_id)
        except (SQLAlchemyError, TimeoutError):
            logger.exception("user_lookup_failed", user_id=user_id)
            return None

    async def insert_refresh_token(self, user_id: int, token: str, expiration: datetime) -> bool:
        try:
            async with asyncio.timeout(self._timeout):
                async with self._sessions() as db:
                    db.add(RefreshToken(user_id=user_id, token=token, expiration=expiration))
                    await db.commit()
        except (SQLAlchemyError, TimeoutError):
            logger.exception("refresh_token_insert_failed", user_id=user_id)
            return False
        return True

    async def is_refresh_token_valid(self, token: str, user_id: Optional[int] = None) -> bool:
        """True iff the token exists, has not expired, and (when given) belongs to user_id."""
        if not token:
            return False
        q = (
            select(func.count())
            .select_from(RefreshToken)
            .where(RefreshToken.token == token)
            .where(RefreshToken.expiration > utcnow())
        )
        if user_id is not None:
            q = q.where(RefreshToken.user_id == user_id)
        try:
            async with asyncio.timeout(self._timeout):
                async with self._sessions() as db:
                    count = (await db.execute(q)).scalar_one()
        except (SQLAlchemyError, TimeoutError):
            logger.exception("refresh_token_lookup_failed", user_id=user_id)
            return False
        return count > 0

    async def purge_expired_refresh_tokens(self, now: Optional[datetime] = None, dry_run: bool = False) -> int:
        """Delete refresh tokens whose expiration has passed; returns how many matched."""
        cutoff = now or utcnow()
        async with asyncio.timeout(self._timeout):
            async with self._sessions() as db:
                if dry_run:
                    q = select(func.count()).select_from(RefreshToken).where(RefreshToken.expiration <= cutoff)
                    return int((await db.execute(q)).scalar_one())
                res = await db.execute(delete(RefreshToken).where(RefreshToken.expiration <= cutoff))
                await db.commit()
                return int(getattr(res, "rowcount", 0) or 0)
