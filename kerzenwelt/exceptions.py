"""Custom exception classes and global exception handlers."""

import logging
import traceback

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class KerzenweltException(Exception):
    """Base exception for all Kerzenwelt API errors."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(KerzenweltException):
    """Resource not found exception."""

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found", 404)


class ForbiddenException(KerzenweltException):
    """Access forbidden exception."""

    def __init__(self, message: str = "You don't have permission to perform this action"):
        super().__init__(message, 403)


class UnauthorizedException(KerzenweltException):
    """Authentication required exception."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, 401)


class ConflictException(KerzenweltException):
    """Resource conflict exception."""

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message, 409)


# ---------------------------------------------------------------------------
# Settings access layer (client side)
# ---------------------------------------------------------------------------


class SettingsAccessError(Exception):
    """Base exception for failures in the settings access layer."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NetworkError(SettingsAccessError):
    """The HTTP transport failed before a response was received."""


class SettingProbeError(SettingsAccessError):
    """The existence probe returned neither 200 nor 404."""

    def __init__(self, key: str, status_code: int):
        self.key = key
        self.status_code = status_code
        super().__init__(f'Error checking status of setting "{key}" (HTTP {status_code})')


class WriteError(SettingsAccessError):
    """A create, update or delete request was rejected by the backend."""

    def __init__(self, key: str, status_code: int, message: str):
        self.key = key
        self.status_code = status_code
        super().__init__(message)


def create_exception_handlers():
    """Create exception handlers that render JSON error envelopes."""

    async def kerzenwelt_exception_handler(request: Request, exc: KerzenweltException):
        """Handle Kerzenwelt custom exceptions."""
        logger.warning(f"KerzenweltException on {request.method} {request.url.path}: {exc.message} (status={exc.status_code})")

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "status": "error",
                "message": exc.message,
            },
        )

    async def generic_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(f"Unhandled exception on {request.method} {request.url.path}")
        logger.error(f"Exception: {type(exc).__name__}: {exc}")
        tb_lines = traceback.format_exception(type(exc), exc, exc.__traceback__)
        logger.error("".join(tb_lines))

        return JSONResponse(
            status_code=500,
            content={
                "status": "error",
                "message": "An unexpected error occurred",
            },
        )

    return {
        KerzenweltException: kerzenwelt_exception_handler,
        Exception: generic_exception_handler,
    }
