# sendlink/middleware/error_handler.py
# Structured error handling middleware
# Catches unhandled exceptions and returns consistent JSON responses

import traceback
import logging
from typing import Callable
from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

from sendlink.utils.logger import log_exception

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error with structured response."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        details: dict = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}


class StorageError(AppError):
    """Backend store unreachable or erroring."""
    def __init__(self, message: str = "Storage operation failed", details: dict = None):
        super().__init__(
            message=message,
            error_code="STORAGE_FAILURE",
            status_code=500,
            details=details
        )


class ValidationError(AppError):
    """Request validation failed."""
    def __init__(self, message: str = "Validation failed", details: dict = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            details=details
        )


class NotFoundError(AppError):
    """Board or share link absent (or expired)."""
    def __init__(self, message: str = "Resource not found", details: dict = None):
        super().__init__(
            message=message,
            error_code="NOT_FOUND",
            status_code=404,
            details=details
        )


class InvalidIndexError(AppError):
    """Media index outside the board's media list."""
    def __init__(self, index: int, length: int):
        super().__init__(
            message="Invalid media index",
            error_code="INVALID_INDEX",
            status_code=400,
            details={"index": index, "length": length}
        )


class InvalidSlugError(AppError):
    """Custom slug has bad characters or length."""
    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="INVALID_SLUG",
            status_code=400
        )


class ExpiryTooLongError(AppError):
    """Requested share expiry exceeds the maximum."""
    def __init__(self, max_seconds: int):
        super().__init__(
            message="Maximum expiry time is 30 days",
            error_code="EXPIRY_TOO_LONG",
            status_code=400,
            details={"max_seconds": max_seconds}
        )


class ShareExpiredError(NotFoundError):
    """Share link exists but its expiry has passed (not yet swept)."""
    def __init__(self, slug: str):
        super().__init__(
            message="Share link has expired",
            details={"slug": slug}
        )
        self.error_code = "SHARE_EXPIRED"


class SlugConflictError(AppError):
    """An unexpired share link already uses the slug."""
    def __init__(self, slug: str):
        super().__init__(
            message="Custom slug already exists",
            error_code="SLUG_CONFLICT",
            status_code=409,
            details={"slug": slug}
        )


class PayloadTooLargeError(AppError):
    """Upload exceeds the size limit."""
    def __init__(self, max_bytes: int):
        super().__init__(
            message=f"File exceeds the {max_bytes // (1024 * 1024)}MB upload limit",
            error_code="PAYLOAD_TOO_LARGE",
            status_code=413,
            details={"max_bytes": max_bytes}
        )


def create_error_response(
    error_code: str,
    message: str,
    status_code: int,
    details: dict = None,
    request_id: str = None,
    headers: dict = None
) -> JSONResponse:
    """Create a standardized JSON error response."""
    content = {
        "error": {
            "code": error_code,
            "message": message,
        }
    }

    if details:
        content["error"]["details"] = details

    if request_id:
        content["error"]["request_id"] = request_id

    return JSONResponse(status_code=status_code, content=content, headers=headers)


def allowed_methods(request: Request) -> list[str]:
    """Collect every method registered for the request path across all routes."""
    methods: set[str] = set()
    for route in request.app.router.routes:
        if not isinstance(route, APIRoute):
            continue
        match, _ = route.matches(request.scope)
        if match != Match.NONE:
            methods |= set(route.methods or ())
    return sorted(methods)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware that catches all unhandled exceptions and returns
    consistent JSON error responses.
    """

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next: Callable):
        # Generate request ID for tracing
        request_id = request.headers.get("X-Request-ID", str(id(request)))

        try:
            response = await call_next(request)
            return response

        except AppError as e:
            # Known application errors
            logger.warning(
                f"AppError: {e.error_code} - {e.message}",
                extra={"request_id": request_id, "path": request.url.path}
            )
            return create_error_response(
                error_code=e.error_code,
                message=e.message,
                status_code=e.status_code,
                details=e.details,
                request_id=request_id
            )

        except HTTPException as e:
            # FastAPI HTTP exceptions
            logger.warning(
                f"HTTPException: {e.status_code} - {e.detail}",
                extra={"request_id": request_id, "path": request.url.path}
            )
            return create_error_response(
                error_code="HTTP_ERROR",
                message=str(e.detail),
                status_code=e.status_code,
                request_id=request_id
            )

        except Exception as e:
            # Unhandled exceptions
            error_details = None
            if self.debug:
                error_details = {
                    "type": type(e).__name__,
                    "traceback": traceback.format_exc()
                }

            # Log full traceback
            log_exception(e, context=f"Unhandled error on {request.url.path}")
            logger.error(
                f"Unhandled exception: {type(e).__name__}: {str(e)}",
                extra={"request_id": request_id, "path": request.url.path},
                exc_info=True
            )

            return create_error_response(
                error_code="INTERNAL_ERROR",
                message="An internal error occurred. Please try again later.",
                status_code=500,
                details=error_details,
                request_id=request_id
            )


def setup_exception_handlers(app):
    """Register exception handlers on FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        logger.info(f"AppError: {exc.error_code} - {exc.message} on {request.url.path}")
        return create_error_response(
            error_code=exc.error_code,
            message=exc.message,
            status_code=exc.status_code,
            details=exc.details,
            request_id=request.headers.get("X-Request-ID")
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Parameter '{location}': {first.get('msg', 'invalid')}" if location else "Invalid request"
        return create_error_response(
            error_code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            request_id=request.headers.get("X-Request-ID")
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        headers = dict(exc.headers or {})
        if exc.status_code == 405:
            headers["Allow"] = ", ".join(allowed_methods(request))
            message = f"Method {request.method} not allowed"
        else:
            message = str(exc.detail)
        return create_error_response(
            error_code="HTTP_ERROR",
            message=message,
            status_code=exc.status_code,
            request_id=request.headers.get("X-Request-ID"),
            headers=headers or None
        )
