"""Auth request/response schemas.

Register and login take the same body (username + password); registering
also opens the caller's zero-balance account, which the response reports so
a client knows where to deposit before bidding.
"""

import re

from pydantic import BaseModel, Field, field_validator

from config.settings import settings
from src.ah_common.cents import cents_to_display
from src.ah_gateway.user.db_models import MIN_USERNAME_LENGTH, UserModel


def _access_ttl_seconds() -> int:
    return settings.JWT_EXPIRE_MINUTES * 60


class Credentials(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        return v.strip()


class RegisterRequest(Credentials):
    username: str = Field(
        ..., min_length=MIN_USERNAME_LENGTH, max_length=64, pattern=r"^[a-zA-Z0-9_]+$"
    )
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def password_complexity(cls, v: str) -> str:
        missing = [
            label
            for label, pattern in (("an uppercase letter", r"[A-Z]"),
                                   ("a lowercase letter", r"[a-z]"),
                                   ("a digit", r"\d"))
            if not re.search(pattern, v)
        ]
        if missing:
            raise ValueError("Password must contain " + ", ".join(missing))
        return v


class LoginRequest(Credentials):
    pass


class RefreshRequest(BaseModel):
    refresh_token: str


class UserInfo(BaseModel):
    user_id: str
    username: str

    @classmethod
    def from_user(cls, user: UserModel) -> "UserInfo":
        return cls(user_id=user.user_id, username=user.username)


class RegisterResponse(UserInfo):
    created_at: str
    balance_cents: int = 0
    balance_display: str = cents_to_display(0)

    @classmethod
    def from_user(cls, user: UserModel) -> "RegisterResponse":
        return cls(
            user_id=user.user_id,
            username=user.username,
            created_at=user.created_at.isoformat(),
        )


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(default_factory=_access_ttl_seconds)
    user: UserInfo

    @classmethod
    def issue(cls, user: UserModel, access_token: str, refresh_token: str) -> "LoginResponse":
        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            user=UserInfo.from_user(user),
        )


class RefreshResponse(BaseModel):
    access_token: str
    expires_in: int = Field(default_factory=_access_ttl_seconds)
