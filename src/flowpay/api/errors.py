"""Error envelopes and app-wide exception handlers."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from flowpay.api.logging import build_request_log_extra
from flowpay.api.models import ErrorEnvelope
from flowpay.api.validation import ValidationError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        ErrorEnvelope(success=False, error=message).model_dump(),
        status_code=status_code,
    )


def _describe_request_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    return f"Invalid {location}: {message}" if location else f"Invalid request: {message}"


async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info(
        "Request rejected: %s",
        exc,
        extra=build_request_log_extra(request, event="request_invalid"),
    )
    return error_response(400, str(exc))


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    message = _describe_request_error(exc)
    logger.info(
        "Request rejected: %s",
        message,
        extra=build_request_log_extra(request, event="request_invalid"),
    )
    return error_response(400, message)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error while serving request",
        exc_info=exc,
        extra=build_request_log_extra(request, event="request_failed"),
    )
    return error_response(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


__all__ = ["error_response", "handle_unexpected_error", "register_exception_handlers"]
