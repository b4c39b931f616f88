"""User service: register, login, refresh.

All DB operations use the injected AsyncSession. Transactions are managed
by the caller (router layer) via `async with db.begin()`.
"""

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_common.errors import (
    AccountDisabledError,
    InvalidCredentialsError,
    UsernameExistsError,
)
from src.ah_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.ah_gateway.auth.password import hash_password, verify_password
from src.ah_gateway.user.db_models import UserModel

_OPEN_ACCOUNT_SQL = text(
    "INSERT INTO accounts (user_id, available_balance, version) "
    "VALUES (:user_id, 0, 0)"
)


class UserService:
    """Stateless service: instantiate once, reuse across requests."""

    async def register(
        self,
        username: str,
        password: str,
        db: AsyncSession,
    ) -> UserModel:
        """Register a new user and open their zero-balance account.

        Inserts into `users` and `accounts` within the caller's transaction.
        """
        # DB UNIQUE constraint is the final guard against a concurrent register
        result = await db.execute(
            select(UserModel).where(UserModel.username == username)
        )
        if result.scalar_one_or_none() is not None:
            raise UsernameExistsError()

        user = UserModel(
            username=username,
            password_hash=hash_password(password),
            is_active=True,
        )
        db.add(user)
        await db.flush()  # Get user.id without committing

        await db.execute(_OPEN_ACCOUNT_SQL, {"user_id": user.user_id})
        await db.refresh(user)  # load server-side created_at
        return user

    async def login(
        self,
        username: str,
        password: str,
        db: AsyncSession,
    ) -> tuple[UserModel, str, str]:
        """Authenticate user and return (user, access_token, refresh_token).

        "User not found" and "wrong password" both raise InvalidCredentialsError
        so usernames cannot be enumerated.
        """
        result = await db.execute(
            select(UserModel).where(UserModel.username == username)
        )
        user = result.scalar_one_or_none()

        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountDisabledError()

        return (
            user,
            create_access_token(user.user_id),
            create_refresh_token(user.user_id),
        )

    async def refresh(self, refresh_token: str) -> str:
        """Validate refresh token and return a new access token."""
        payload = decode_token(refresh_token, expected_type="refresh")
        user_id: str = str(payload["sub"])
        return create_access_token(user_id)
