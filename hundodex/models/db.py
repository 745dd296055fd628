"""
SQLAlchemy ORM models for persistent storage.

The saved_user_data table is the remote row store for annotations.
User accounts and auth sessions back the bundled identity provider.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from hundodex.config import SAVED_USER_DATA_TABLE


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class SavedUserDataDB(Base):
    """
    Per-user progress flags for one catalog entry.

    One row per (pokemon_number, user_id).
    """

    __tablename__ = SAVED_USER_DATA_TABLE
    __table_args__ = (UniqueConstraint("pokemon_number", "user_id", name="uq_entry_user"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pokemon_number: Mapped[int] = mapped_column(Integer, index=True)
    user_id: Mapped[str] = mapped_column(String(255), index=True)

    # "100IV" and "Shiny 100IV" checkboxes
    iv_100: Mapped[bool] = mapped_column(Boolean, default=False)
    shiny_iv_100: Mapped[bool] = mapped_column(Boolean, default=False)
    # "Dynamax Best IV"
    dynamax_best_iv: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<SavedUserDataDB(entry={self.pokemon_number}, user_id={self.user_id})>"


class UserAccountDB(Base):
    """An account registered with the identity provider."""

    __tablename__ = "user_accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(128))
    salt: Mapped[str] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<UserAccountDB(id={self.id}, email={self.email})>"


class AuthSessionDB(Base):
    """An active sign-in, addressed by its opaque token."""

    __tablename__ = "auth_sessions"

    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("user_accounts.id", ondelete="CASCADE"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<AuthSessionDB(user_id={self.user_id})>"
