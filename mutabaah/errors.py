"""
Error taxonomy shared by the gate, the handlers and the content proxy.

Every class is an ``HTTPException`` so FastAPI routes can simply ``raise`` it;
``register_error_handlers`` renders all of them as ``{"error": ..., "code": ...}``.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(HTTPException):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, *, code: str | None = None) -> None:
        super().__init__(status_code=self.status_code, detail=message or self.default_message)
        self.code = code

    @property
    def message(self) -> str:
        return str(self.detail)


class AuthenticationMissing(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class AuthorizationDenied(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Permission denied"


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Already exists"


class ConfigurationError(AppError):
    """Missing secret or environment value. Detail stays server-side."""

    default_message = "Server configuration error"


class StoreError(AppError):
    default_message = "Database operation failed"


class UpstreamFailure(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Content provider unavailable, please try again"

    def __init__(self, message: str | None = None, *, code: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message, code=code)
        if status_code is not None:
            self.status_code = status_code


class RegistrationFailed(AppError):
    """Profile creation failed; ``rollback_error`` is set when the compensating delete failed too."""

    default_message = "Registration failed, please try again"

    def __init__(self, primary_error: str, rollback_error: str | None = None) -> None:
        message = self.default_message
        if rollback_error:
            message = f"{message} (cleanup also failed)"
        super().__init__(message, code="registration_incomplete" if rollback_error else "registration_failed")
        self.primary_error = primary_error
        self.rollback_error = rollback_error


def store_error_from(exc: SQLAlchemyError) -> AppError:
    """Translate a raw store exception into the taxonomy, keeping the store's error code."""

    orig = getattr(exc, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(exc, "code", None)
    if isinstance(exc, IntegrityError):
        return Conflict("Record conflicts with existing data", code=code)
    return StoreError(code=code)


def _error_body(message: str, code: str | None) -> dict[str, str]:
    body = {"error": message}
    if code:
        body["code"] = code
    return body


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        code = getattr(exc, "code", None)
        if isinstance(exc, ConfigurationError):
            logger.error("Configuration error path=%s: %s", request.url.path, exc.detail)
            return JSONResponse(_error_body(ConfigurationError.default_message, code), status_code=exc.status_code)
        if isinstance(exc, RegistrationFailed):
            logger.error(
                "Registration failed path=%s primary=%s rollback=%s",
                request.url.path,
                exc.primary_error,
                exc.rollback_error,
            )
        return JSONResponse(_error_body(str(exc.detail), code), status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = []
        for err in exc.errors():
            loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
            fields.append(".".join(loc) or "body")
        message = "Invalid or missing fields: " + ", ".join(sorted(set(fields)))
        return JSONResponse(_error_body(message, "validation_error"), status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(SQLAlchemyError)
    async def _store_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("Store error path=%s method=%s", request.url.path, request.method)
        translated = store_error_from(exc)
        return JSONResponse(_error_body(translated.message, translated.code), status_code=translated.status_code)
