"""FastAPI dependencies: ``protect`` and ``restrict_to``.

``protect`` resolves the :class:`User` behind an ``Authorization: Bearer``
header, rejecting the request with 401 at the first failed check.
``restrict_to`` builds on it and rejects callers outside a role set with 403.
"""

from __future__ import annotations

import logging

import jwt
from fastapi import Depends, Header, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.auth.tokens import decode_token, extract_bearer
from authgate.db.engine import get_db
from authgate.db.models import User
from authgate.errors import AppError
from authgate.services import user_service
from authgate.utils.logger import ctx_user_id

logger = logging.getLogger("authgate.auth")


def _unauthorized(message: str) -> AppError:
    return AppError(message, status.HTTP_401_UNAUTHORIZED)


async def protect(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Return the authenticated :class:`User` for this request."""
    # 1) Token present?
    token = extract_bearer(authorization)
    if not token:
        raise _unauthorized("You are not logged in! Please log in to get access")

    # 2) Token valid?
    try:
        payload = decode_token(token)
    except jwt.ExpiredSignatureError as exc:
        raise _unauthorized("Your token has expired! Please log in again.") from exc
    except jwt.InvalidTokenError as exc:
        logger.debug("Token rejected: %s", exc)
        raise _unauthorized("Invalid token. Please log in again!") from exc

    # 3) Subject still exists?
    user = await user_service.get_user_by_id(db, payload["sub"])
    if user is None or not user.is_active:
        raise _unauthorized("The user belonging to this token does not exist")

    # 4) Password changed after the token was issued?
    if user.changed_password_after(payload["iat"]):
        raise _unauthorized("User changed password recently! Please log in again.")

    request.state.user = user
    ctx_user_id.set(user.user_id)
    return user


def restrict_to(*roles: str):
    """Return a FastAPI dependency that only admits users holding one of *roles*.

    Usage::

        @router.delete("/{id}", dependencies=[Depends(restrict_to("admin", "editor"))])
        async def delete_thing(...): ...
    """
    allowed = frozenset(roles)

    async def _check(user: User = Depends(protect)) -> User:
        if user.role not in allowed:
            logger.warning(
                "Access denied — user '%s' (role=%s) needs one of %s",
                user.email,
                user.role,
                sorted(allowed),
            )
            raise AppError(
                "You do not have permission to perform this action.",
                status.HTTP_403_FORBIDDEN,
            )
        return user

    return _check
