"""Error handling middleware."""

from typing import Any

import structlog
from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.core.exceptions import AppException

logger = structlog.get_logger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle custom application exceptions.

    Args:
        request: Request object
        exc: Application exception

    Returns:
        JSON error response
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "app_exception",
        error=exc.__class__.__name__,
        code=exc.code,
        status_code=exc.status_code,
        method=request.method,
        path=request.url.path,
    )

    content: dict[str, Any] = {
        "error": exc.__class__.__name__,
        "message": exc.message,
        "path": str(request.url.path),
    }
    if exc.code:
        content["code"] = exc.code

    headers = dict(SECURITY_HEADERS)
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers["WWW-Authenticate"] = "Bearer"

    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """
    Handle HTTP exceptions.

    Args:
        request: Request object
        exc: HTTP exception

    Returns:
        JSON error response
    """
    message = exc.detail
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = f"Route not found: {request.method} {request.url.path}"

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "HTTPException",
            "message": message,
            "path": str(request.url.path),
        },
        headers={**SECURITY_HEADERS, **(exc.headers or {})},
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Handle validation errors.

    Args:
        request: Request object
        exc: Validation exception

    Returns:
        JSON error response with validation details
    """
    errors = exc.errors()
    # Never echo submitted secrets back
    for error in errors:
        error.pop("input", None)
        error.pop("ctx", None)

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "details": jsonable_encoder(errors),
            "path": str(request.url.path),
        },
        headers=SECURITY_HEADERS,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Args:
        request: Request object
        exc: Exception

    Returns:
        JSON error response; internals are only exposed in development
    """
    logger.error(
        "unhandled_exception",
        error=exc.__class__.__name__,
        method=request.method,
        path=request.url.path,
        exc_info=exc,
    )

    content: dict[str, Any] = {
        "error": "InternalServerError",
        "message": "An unexpected error occurred",
        "path": str(request.url.path),
    }
    if settings.is_development:
        content["detail"] = f"{exc.__class__.__name__}: {exc}"

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
        headers=SECURITY_HEADERS,
    )
