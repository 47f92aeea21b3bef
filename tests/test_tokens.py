import time
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi_users.jwt import generate_jwt
from sqlalchemy import select

from inventory_api.core.results import Ok
from inventory_api.db.users import RefreshToken
from inventory_api.services.session import Identity, extract_token
from inventory_api.services.tokens import TOKEN_AUDIENCE

from conftest import SECRET

pytestmark = pytest.mark.anyio


async def _user(services, username="alice"):
    result = await services.credentials.create_user("Alice", "Smith", username, "pw")
    assert isinstance(result, Ok)
    return result.value


def _decode(token):
    return jwt.decode(token, SECRET, algorithms=["HS256"], audience=TOKEN_AUDIENCE)


class TestAccessToken:
    async def test_carries_user_id_and_one_hour_expiry(self, services):
        before = int(time.time())
        token = services.tokens.create_access_token(42)
        claims = _decode(token)

        assert claims["id"] == "42"
        assert before + 3600 - 5 <= claims["exp"] <= int(time.time()) + 3600 + 5


class TestTokenPair:
    async def test_refresh_token_is_persisted_for_seven_days(self, services, session_maker):
        user_id = await _user(services)
        pair = await services.tokens.issue_token_pair(user_id)

        assert pair.user_id == user_id
        assert _decode(pair.access_token)["id"] == str(user_id)
        expected = datetime.now(timezone.utc) + timedelta(days=7)
        assert abs((pair.refresh_token_expiration - expected).total_seconds()) < 60

        async with session_maker() as db:
            row = (await db.execute(select(RefreshToken).where(RefreshToken.token == pair.refresh_token))).scalar_one()
        assert row.user_id == user_id
        assert await services.credentials.is_refresh_token_valid(pair.refresh_token, user_id=user_id)

    async def test_every_login_gets_its_own_refresh_token(self, services):
        user_id = await _user(services)
        first = await services.tokens.issue_token_pair(user_id)
        second = await services.tokens.issue_token_pair(user_id)

        assert first.refresh_token != second.refresh_token
        assert await services.credentials.is_refresh_token_valid(first.refresh_token)
        assert await services.credentials.is_refresh_token_valid(second.refresh_token)

    async def test_pair_is_returned_even_when_persisting_fails(self, services):
        # No such user: the foreign key rejects the refresh-token row
        pair = await services.tokens.issue_token_pair(999)
        assert pair.access_token
        assert not await services.credentials.is_refresh_token_valid(pair.refresh_token)


class TestSessionValidator:
    async def test_resolves_bearer_token(self, services):
        user_id = await _user(services)
        token = services.tokens.create_access_token(user_id)

        identity = await services.sessions.resolve(f"Bearer {token}")
        assert identity == Identity(user_id=user_id, username="alice")

    async def test_resolves_bare_token(self, services):
        user_id = await _user(services)
        token = services.tokens.create_access_token(user_id)
        identity = await services.sessions.resolve(token)
        assert identity.user_id == user_id

    async def test_missing_header(self, services):
        assert await services.sessions.resolve(None) is None
        assert await services.sessions.resolve("") is None

    async def test_expired_token_is_rejected(self, services):
        user_id = await _user(services)
        token = generate_jwt({"id": str(user_id), "aud": TOKEN_AUDIENCE}, SECRET, lifetime_seconds=-1)
        assert await services.sessions.resolve(f"Bearer {token}") is None

    async def test_token_without_expiry_is_rejected(self, services):
        user_id = await _user(services)
        token = generate_jwt({"id": str(user_id), "aud": TOKEN_AUDIENCE}, SECRET)
        assert await services.sessions.resolve(f"Bearer {token}") is None

    async def test_foreign_signature_is_rejected(self, services):
        user_id = await _user(services)
        token = generate_jwt(
            {"id": str(user_id), "aud": TOKEN_AUDIENCE}, "some-other-secret-of-sufficient-size", lifetime_seconds=60
        )
        assert await services.sessions.resolve(f"Bearer {token}") is None

    async def test_malformed_token_is_rejected(self, services):
        assert await services.sessions.resolve("Bearer not-a-jwt") is None

    async def test_token_for_missing_user_is_rejected(self, services):
        token = services.tokens.create_access_token(999)
        assert await services.sessions.resolve(f"Bearer {token}") is None

    async def test_non_integer_id_claim_is_rejected(self, services):
        token = generate_jwt({"id": "abc", "aud": TOKEN_AUDIENCE}, SECRET, lifetime_seconds=60)
        assert await services.sessions.resolve(f"Bearer {token}") is None


class TestExtractToken:
    def test_shapes(self):
        assert extract_token("Bearer abc") == "abc"
        assert extract_token("bearer abc") == "abc"
        assert extract_token("abc") == "abc"
        assert extract_token("Basic a b") is None
        assert extract_token("   ") is None
        assert extract_token(None) is None
