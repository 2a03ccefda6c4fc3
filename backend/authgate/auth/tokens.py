"""Bearer token issuance and verification (PyJWT)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import jwt

from authgate.config import parse_duration, settings

__all__ = ["decode_token", "extract_bearer", "parse_duration", "sign_token"]


def sign_token(user_id: str, *, now: datetime | None = None) -> str:
    """Return a signed, time-limited token whose subject is *user_id*."""
    issued = now or datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "iat": int(issued.timestamp()),
        "exp": int((issued + parse_duration(settings.JWT_EXPIRES_IN)).timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry.  PyJWT errors propagate to the caller."""
    return jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["sub", "iat", "exp"]},
    )


def extract_bearer(authorization: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None
