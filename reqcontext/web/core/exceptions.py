"""
Custom exception classes.

Represent failures to derive facts from incomplete request data.
"""

import logging
from typing import Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("reqcontext.exceptions")


class RequestError(Exception):
    """Base exception class for request context errors."""

    kind = "RequestError"


class ClientIpUnavailableError(RequestError):
    """Raised when no client IP can be determined from the request."""

    kind = "ClientIpUnavailable"

    def __init__(self, detail: str = "Unable to get client IP address."):
        super().__init__(detail)


class FileFieldMissingError(RequestError):
    """Raised when the requested upload field does not exist."""

    kind = "FileFieldMissing"

    def __init__(self, name: str, array_offset: Optional[int] = None):
        self.name = name
        self.array_offset = array_offset
        if array_offset is None:
            message = f"Upload field not found: {name}"
        else:
            message = f"Upload field not found: {name}[{array_offset}]"
        super().__init__(message)


class RequestContextNotBoundError(RequestError):
    """Raised when the current request context is read outside a request cycle."""

    kind = "RequestContextNotBound"

    def __init__(self):
        super().__init__("No request context is bound to the current execution context")


# ===========================================
# Exception Handlers
# ===========================================


async def request_error_handler(request: Request, exc: RequestError):
    """
    Handler for request context errors.
    """
    logger.warning(
        f"Request error: {exc}",
        extra={"kind": exc.kind, "path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": str(exc), "kind": exc.kind},
    )


async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler for unhandled exceptions.
    """
    logger.error(
        f"Global exception handler caught: {exc}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal Server Error", "detail": str(exc)},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Handler for HTTPException.
    """
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for validation errors.
    """
    return JSONResponse(
        status_code=422,
        content={"message": "Validation Error", "detail": str(exc.errors())},
    )
