"""ORM model for the users table (migration 002).

Sellers and bidders are the same kind of user. Everything downstream of the
gateway identifies a user by `user_id`, the string form of the primary key,
which is what auctions, bids and accounts store.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, String, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.ah_common.database import Base

MIN_USERNAME_LENGTH = 3


class UserModel(Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("username", name="uq_users_username"),
        CheckConstraint(
            f"LENGTH(username) >= {MIN_USERNAME_LENGTH}", name="ck_users_username_len"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")
    )
    username: Mapped[str] = mapped_column(String(64), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("NOW()")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("NOW()")
    )

    @property
    def user_id(self) -> str:
        return str(self.id)

    def __repr__(self) -> str:
        return f"<UserModel {self.username} {self.id}>"
