"""User store — CRUD with bcrypt password hashing and field validation.

Roles (ascending privilege):
    user < editor < admin

Validation lives here rather than in the request schemas so every caller
(sign-up route, password change, bootstrap seeding) gets the same rules.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
from email_validator import EmailNotValidError, validate_email
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.config import settings
from authgate.db.models import VALID_ROLES, User
from authgate.errors import DuplicateEmailError, UserValidationError

logger = logging.getLogger("authgate.users")

MIN_PASSWORD_LENGTH = 8
# bcrypt only reads the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


def _hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _password_errors(password: str | None, password_confirm: str | None) -> list[str]:
    errors: list[str] = []
    if not password:
        errors.append("Please provide a password")
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"A password must have at least {MIN_PASSWORD_LENGTH} characters")
    elif len(password.encode()) > MAX_PASSWORD_BYTES:
        errors.append(f"A password must have at most {MAX_PASSWORD_BYTES} bytes")
    if not password_confirm:
        errors.append("Please confirm your password")
    elif password and password != password_confirm:
        errors.append("Passwords are not the same!")
    return errors


def _validate_new_user(
    name: str | None,
    email: str,
    password: str | None,
    password_confirm: str | None,
    role: str,
) -> list[str]:
    errors: list[str] = []
    if not (name or "").strip():
        errors.append("Please tell us your name!")
    if not email:
        errors.append("Please provide your email")
    else:
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError:
            errors.append("Please provide a valid email")
    errors.extend(_password_errors(password, password_confirm))
    if role not in VALID_ROLES:
        errors.append(f"Invalid role '{role}'. Must be one of: {', '.join(VALID_ROLES)}")
    return errors


# ── CRUD ──────────────────────────────────────────────────────


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    result = await db.execute(select(User).where(User.user_id == user_id))
    return result.scalar_one_or_none()


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.created_at))
    return list(result.scalars().all())


async def create_user(
    db: AsyncSession,
    *,
    name: str | None,
    email: str | None,
    password: str | None,
    password_confirm: str | None,
    role: str = "user",
) -> User:
    """Validate and insert a new user.

    Raises :class:`UserValidationError` listing every failed rule, or
    :class:`DuplicateEmailError` when the email is taken.
    """
    email = normalize_email(email)
    errors = _validate_new_user(name, email, password, password_confirm, role)
    if errors:
        raise UserValidationError(errors)

    if await get_user_by_email(db, email) is not None:
        raise DuplicateEmailError(email)

    user = User(
        name=(name or "").strip(),
        email=email,
        hashed_password=_hash_password(password),
        role=role,
        is_active=True,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as exc:
        # Lost a race with a concurrent sign-up for the same email
        await db.rollback()
        raise DuplicateEmailError(email) from exc
    await db.refresh(user)
    logger.info("Created user '%s' with role '%s'", email, role)
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    """Verify email + password. Returns User on success, None on any failure."""
    user = await get_user_by_email(db, email)
    if not user or not user.is_active:
        return None
    if not user.correct_password(password):
        return None
    return user


async def change_password(
    db: AsyncSession,
    user: User,
    *,
    password: str | None,
    password_confirm: str | None,
) -> User:
    """Re-hash the password and stamp ``password_changed_at``.

    The stamp is set one second in the past so a token issued immediately
    after the change is not rejected as stale.
    """
    errors = _password_errors(password, password_confirm)
    if errors:
        raise UserValidationError(errors)
    user.hashed_password = _hash_password(password)
    user.password_changed_at = datetime.now(timezone.utc) - timedelta(seconds=1)
    await db.flush()
    await db.refresh(user)
    logger.info("Password changed for user '%s'", user.email)
    return user


async def set_role(db: AsyncSession, user: User, role: str) -> User:
    if role not in VALID_ROLES:
        raise UserValidationError(
            [f"Invalid role '{role}'. Must be one of: {', '.join(VALID_ROLES)}"]
        )
    user.role = role
    await db.flush()
    await db.refresh(user)
    logger.info("Role of user '%s' set to '%s'", user.email, role)
    return user


async def ensure_default_admin(db: AsyncSession) -> User | None:
    """Seed the bootstrap admin if no admin user exists yet.

    Disabled when ``BOOTSTRAP_ADMIN_PASSWORD`` is blank.
    """
    password = settings.BOOTSTRAP_ADMIN_PASSWORD
    if not password:
        return None
    result = await db.execute(select(User).where(User.role == "admin").limit(1))
    if result.scalar_one_or_none() is not None:
        return None
    user = await create_user(
        db,
        name=settings.BOOTSTRAP_ADMIN_NAME,
        email=settings.BOOTSTRAP_ADMIN_EMAIL,
        password=password,
        password_confirm=password,
        role="admin",
    )
    await db.commit()
    logger.info("Seeded bootstrap admin user '%s'", user.email)
    return user
