"""Users management API.

Endpoints
---------
GET   /api/users                 — list all users (admin)
GET   /api/users/{id}            — get user (admin)
PATCH /api/users/{id}/role       — change a user's role (admin)
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.auth.deps import restrict_to
from authgate.db.engine import get_db
from authgate.db.models import User
from authgate.errors import AppError
from authgate.schemas.users import RoleUpdate, UserOut
from authgate.services import user_service

logger = logging.getLogger("authgate.api.users")
router = APIRouter(tags=["users"])

admin_only = restrict_to("admin")


async def _get_or_404(db: AsyncSession, user_id: str) -> User:
    user = await user_service.get_user_by_id(db, user_id)
    if user is None:
        raise AppError("No user found with that ID", status.HTTP_404_NOT_FOUND)
    return user


@router.get("")
async def list_users(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> dict:
    users = await user_service.list_users(db)
    return {
        "status": "success",
        "results": len(users),
        "data": {"users": [UserOut.from_orm_user(u).model_dump(mode="json") for u in users]},
    }


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> dict:
    user = await _get_or_404(db, user_id)
    return {"status": "success", "data": {"user": UserOut.from_orm_user(user).model_dump(mode="json")}}


@router.patch("/{user_id}/role")
async def update_role(
    user_id: str,
    body: RoleUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(admin_only),
) -> dict:
    user = await _get_or_404(db, user_id)
    user = await user_service.set_role(db, user, body.role)
    logger.info("Admin '%s' set role of '%s' to '%s'", admin.email, user.email, user.role)
    return {"status": "success", "data": {"user": UserOut.from_orm_user(user).model_dump(mode="json")}}
