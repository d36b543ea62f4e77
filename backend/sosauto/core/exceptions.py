"""
core/exceptions.py

Defines the standard error response formats for the API:
- Validation failures: HTTP 400 with a list of field errors
- Unhandled failures: HTTP 500 with a generic message
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from sosauto.core.config import settings
from sosauto.core.schemas import FieldError, ValidationErrorResponse

logger = logging.getLogger(__name__)


def _field_name(loc: tuple[Any, ...]) -> str:
    # ("body", "providerId") -> "providerId"; ("path", "booking_id") -> "booking_id"
    parts = [str(p) for p in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(parts) or "body"


def format_validation_errors(exc: RequestValidationError) -> list[FieldError]:
    """Flattens pydantic errors into (field, message) pairs."""
    return [
        FieldError(field=_field_name(tuple(err.get("loc", ()))), message=err.get("msg", "Invalid value"))
        for err in exc.errors()
    ]


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Returns request validation failures as HTTP 400 with structured field errors."""
    errors = format_validation_errors(exc)
    logger.warning(f"[VALIDATION] {request.method} {request.url.path}: {[e.field for e in errors]}")
    body = ValidationErrorResponse(errors=errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(body),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Returns a generic 500; exception text is only exposed in debug mode."""
    logger.error(
        f"[ERROR] Unhandled exception on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    content: dict[str, Any] = {"detail": "Internal server error"}
    if settings.DEBUG:
        content["error"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """Attaches the API error handlers to the application."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
