"""Authentication API — sign-up, login, identity and password change.

Endpoints
---------
POST  /api/auth/signup     name + email + password + confirmation -> JWT
POST  /api/auth/login      email + password -> JWT
GET   /api/auth/me         current user (protected)
PATCH /api/auth/password   change own password -> fresh JWT (protected)

Every success response uses the ``{"status": "success", "token", "data"}``
envelope; failures are rendered by :mod:`authgate.errors`.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.auth.deps import protect
from authgate.auth.tokens import sign_token
from authgate.db.engine import get_db
from authgate.db.models import User
from authgate.errors import AppError
from authgate.schemas.users import UserOut
from authgate.services import user_service

logger = logging.getLogger("authgate.auth")
router = APIRouter()


# -- Schemas --

class SignupRequest(BaseModel):
    # Everything optional so missing fields reach the user store's validation
    name: str | None = None
    email: str | None = None
    password: str | None = None
    password_confirm: str | None = Field(
        default=None,
        validation_alias=AliasChoices("passwordConfirm", "password_confirm"),
    )


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class PasswordChangeRequest(BaseModel):
    password_current: str | None = Field(
        default=None,
        validation_alias=AliasChoices("passwordCurrent", "password_current"),
    )
    password: str | None = None
    password_confirm: str | None = Field(
        default=None,
        validation_alias=AliasChoices("passwordConfirm", "password_confirm"),
    )


def _token_response(user: User, *, include_user: bool = True) -> dict:
    body: dict = {"status": "success", "token": sign_token(user.user_id)}
    if include_user:
        body["data"] = {"user": UserOut.from_orm_user(user).model_dump(mode="json")}
    return body


# -- Routes --

@router.post("/signup", status_code=status.HTTP_200_OK, summary="Create an account")
async def signup(
    body: SignupRequest,
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Register a new ``user``-role account.  The role cannot be chosen here."""
    user = await user_service.create_user(
        db,
        name=body.name,
        email=body.email,
        password=body.password,
        password_confirm=body.password_confirm,
    )
    logger.info("Signup: user='%s'", user.email)
    return _token_response(user)


@router.post("/login", summary="Login with email + password")
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> dict:
    # 1) Both credentials present?
    if not body.email or not body.password:
        raise AppError("Please provide email and password", status.HTTP_400_BAD_REQUEST)

    # 2) User exists and password matches?  Same answer for either failure.
    user = await user_service.authenticate(db, body.email, body.password)
    if user is None:
        logger.info("Failed login attempt for '%s'", body.email)
        raise AppError("Incorrect email or password", status.HTTP_401_UNAUTHORIZED)

    # 3) Issue token
    logger.info("Login: user='%s' role='%s'", user.email, user.role)
    return _token_response(user, include_user=False)


@router.get("/me", summary="Return the current authenticated user")
async def me(user: User = Depends(protect)) -> dict:
    return {"status": "success", "data": {"user": UserOut.from_orm_user(user).model_dump(mode="json")}}


@router.patch("/password", summary="Change own password")
async def update_password(
    body: PasswordChangeRequest,
    user: User = Depends(protect),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Change the caller's password.  Tokens issued before the change stop working."""
    if not user.correct_password(body.password_current or ""):
        raise AppError("Your current password is wrong.", status.HTTP_401_UNAUTHORIZED)
    user = await user_service.change_password(
        db,
        user,
        password=body.password,
        password_confirm=body.password_confirm,
    )
    return _token_response(user)
