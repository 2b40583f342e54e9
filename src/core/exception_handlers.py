"""FastAPI exception handlers rendering the uniform error envelope."""

import logging
from typing import Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import IS_DEVELOPMENT
from core.exceptions import CoachbookError, ValidationError

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "code": code},
    )


async def coachbook_exception_handler(request: Request, exc: CoachbookError):
    logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return exc.to_response()


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    fields: Dict[str, List[str]] = {}
    for error in exc.errors():
        # Drop the "body"/"query"/"path" prefix
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        name = ".".join(loc) or "body"
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        fields.setdefault(name, []).append(message)

    logger.warning("%s %s -> validation failed: %s", request.method, request.url.path, sorted(fields))
    return ValidationError("Validation failed", fields).to_response()


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        code = "ROUTE_NOT_FOUND"
    elif exc.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
        code = "AUTHENTICATION_ERROR"
    else:
        code = "HTTP_ERROR"
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _error(exc.status_code, message, code)


async def integrity_exception_handler(request: Request, exc: IntegrityError):
    logger.warning("%s %s -> integrity error: %s", request.method, request.url.path, exc.orig)
    return _error(
        status.HTTP_409_CONFLICT,
        "Resource already exists",
        "UNIQUE_CONSTRAINT_VIOLATION",
    )


async def generic_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled error on %s %s: %r", request.method, request.url.path, exc, exc_info=exc
    )
    message = str(exc) if IS_DEVELOPMENT else "An unexpected error occurred"
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, message, "INTERNAL_SERVER_ERROR")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CoachbookError, coachbook_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
