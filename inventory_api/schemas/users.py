# Pydantic schemas for user-related requests/responses

from datetime import datetime

from pydantic import field_validator

from .base import CamelModel

PROFILE_FIELD_MAX_LENGTH = 100


class AuthenticationRequest(CamelModel):
    username: str
    password: str


class CreateUserRequest(AuthenticationRequest):
    first_name: str
    last_name: str

    @field_validator("first_name", "last_name", "username")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        if len(v) > PROFILE_FIELD_MAX_LENGTH:
            raise ValueError(f"must be at most {PROFILE_FIELD_MAX_LENGTH} characters")
        return v

    @field_validator("password")
    @classmethod
    def _password_required(cls, v: str) -> str:
        if not v:
            raise ValueError("password is required")
        return v


class AuthenticatedUserLoginResponse(CamelModel):
    user_id: int
    access_token: str
    refresh_token: str
    refresh_token_expiration: datetime
