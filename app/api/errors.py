"""
Exception handlers mapping service errors to the structured JSON error body.

Body: {"error": <message>, "code": "NOT_FOUND" | "VALIDATION" | "INTERNAL"}, plus
"details" outside production. Rejected lead transitions always carry valid_transitions.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.middleware.correlation_id import get_correlation_id
from app.services.errors import (
    ERROR_INTERNAL,
    ERROR_VALIDATION,
    InvalidTransitionError,
    ServiceError,
)

logger = logging.getLogger(__name__)


def _show_details() -> bool:
    return settings.app_env != "production"


def error_body(message: str, code: str, details=None) -> dict:
    body = {"error": message, "code": code}
    if details and _show_details():
        body["details"] = details
    return body


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")

    body = error_body(exc.message, exc.code, exc.details)
    if isinstance(exc, InvalidTransitionError):
        body["valid_transitions"] = exc.allowed
    return JSONResponse(status_code=exc.status_code, content=body)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": err.get("msg")}
        for err in exc.errors()
    ]
    logger.info(f"Request validation failed on {request.method} {request.url.path}: {errors}")
    return JSONResponse(
        status_code=400,
        content=error_body("Validation failed", ERROR_VALIDATION, {"errors": errors}),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        f"Unhandled error on {request.method} {request.url.path} "
        f"(correlation_id={get_correlation_id(request)}): {exc}"
    )
    details = {"type": type(exc).__name__, "message": str(exc)}
    return JSONResponse(
        status_code=500,
        content=error_body("Internal server error", ERROR_INTERNAL, details),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
