"""ORM models — the users table."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import bcrypt
from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Roles (ascending privilege)
VALID_ROLES = ("user", "editor", "admin")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> str:
    return str(uuid.uuid4())


def _as_utc(dt: datetime) -> datetime:
    # SQLite returns naive datetimes — treat as UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    email: Mapped[str] = mapped_column(String(256), nullable=False, unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="user")
    password_changed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    def correct_password(self, candidate: str) -> bool:
        """Compare *candidate* against the stored bcrypt hash."""
        if not candidate or not self.hashed_password:
            return False
        try:
            return bcrypt.checkpw(candidate.encode(), self.hashed_password.encode())
        except ValueError:
            # Malformed hash in the row
            return False

    def changed_password_after(self, issued_at: int) -> bool:
        """True if the password was changed after a token issued at *issued_at* (epoch seconds)."""
        if self.password_changed_at is None:
            return False
        changed_ts = int(_as_utc(self.password_changed_at).timestamp())
        return changed_ts > int(issued_at)

    def __repr__(self) -> str:
        return f"<User {self.email} role={self.role}>"
