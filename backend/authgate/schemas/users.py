"""Pydantic models for users."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class UserOut(BaseModel):
    """Public view of a user.  Carries no password material."""

    user_id: str
    name: str
    email: str
    role: str
    is_active: bool
    password_changed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @classmethod
    def from_orm_user(cls, obj: object) -> "UserOut":
        return cls.model_validate(obj)


class RoleUpdate(BaseModel):
    role: str
