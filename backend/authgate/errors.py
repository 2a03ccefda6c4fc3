"""Operational errors and the central error responder.

Route handlers and dependencies raise :class:`AppError` (or one of the user
store errors) and never build error responses themselves.  The handlers
registered by :func:`register_exception_handlers` render every failure in the
same envelope::

    {"status": "fail" | "error", "message": "..."}

``fail`` is used for 4xx responses, ``error`` for everything else.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from authgate.config import settings

logger = logging.getLogger("authgate.errors")

_GENERIC_MESSAGE = "Something went very wrong!"


class AppError(Exception):
    """An expected failure carrying the HTTP status to answer with."""

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def status(self) -> str:
        return "fail" if 400 <= self.status_code < 500 else "error"

    def __repr__(self) -> str:
        return f"AppError({self.status_code}, {self.message!r})"


class UserValidationError(ValueError):
    """The user store rejected the submitted fields."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = list(errors)


class DuplicateEmailError(ValueError):
    """A user with this email already exists."""

    def __init__(self, email: str) -> None:
        super().__init__(email)
        self.email = email


def _envelope(message: str, status_code: int) -> JSONResponse:
    body = {"status": "fail" if 400 <= status_code < 500 else "error", "message": message}
    return JSONResponse(status_code=status_code, content=body)


def _validation_message(errors: list[str]) -> str:
    sentences = [e if e.endswith((".", "!", "?")) else e + "." for e in errors]
    return "Invalid input data. " + " ".join(sentences)


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.info("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
    response = _envelope(exc.message, exc.status_code)
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


async def _user_validation_handler(request: Request, exc: UserValidationError) -> JSONResponse:
    return _envelope(_validation_message(exc.errors), status.HTTP_400_BAD_REQUEST)


async def _duplicate_email_handler(request: Request, exc: DuplicateEmailError) -> JSONResponse:
    return _envelope(
        f"Duplicate field value: {exc.email}. Please use another value!",
        status.HTTP_400_BAD_REQUEST,
    )


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "invalid value")
        errors.append(f"{loc}: {msg}" if loc else msg)
    return _envelope(_validation_message(errors or ["malformed request"]), status.HTTP_400_BAD_REQUEST)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    response = _envelope(message, exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if settings.DEBUG:
        return _envelope(f"{type(exc).__name__}: {exc}", status.HTTP_500_INTERNAL_SERVER_ERROR)
    return _envelope(_GENERIC_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(UserValidationError, _user_validation_handler)
    app.add_exception_handler(DuplicateEmailError, _duplicate_email_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_handler)
