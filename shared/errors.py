"""Storefront error types and the JSON error rendering shared by every route.

Every failure leaves the API as ``{"error": <message>}``, optionally with a
``details`` field. Routes and services raise the subclasses below; the
handlers registered by :func:`register_exception_handlers` map them to status
codes.
"""
from typing import Any, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger(__name__)


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class InvalidRequestError(StorefrontError):
    """Raised when client input is malformed or fails a business rule."""

    status_code = 400


class NotAuthenticatedError(StorefrontError):
    """Raised when a route needs a signed-in user and none was presented."""

    status_code = 401


class NotFoundError(StorefrontError):
    """Raised when a product, order or postcode cannot be found."""

    status_code = 404


class UpstreamServiceError(StorefrontError):
    """Raised when the database or a third-party API fails."""

    status_code = 500


class ServiceUnavailableError(StorefrontError):
    """Raised when a required integration is not configured."""

    status_code = 503


def error_body(message: str, details: Optional[Any] = None) -> dict:
    body = {"error": message}
    if details is not None:
        body["details"] = details
    return body


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.details))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content=error_body("Invalid request", details))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path)
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
