#!/usr/bin/env python3
"""
Error handlers for the web application.

Service exceptions are defined in ``matchmaking.exceptions``; this module maps
them to HTTP status codes with a consistent JSON body.
"""

import logging
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse

from matchmaking.exceptions import (
    ServiceException,
    ValidationError,
    NotFoundError,
    QuotaExceededError,
    ConflictError,
    DependencyError,
)

logger = logging.getLogger(__name__)

STATUS_CODES = {
    ValidationError: 400,
    NotFoundError: 404,
    ConflictError: 409,
    QuotaExceededError: 429,
    DependencyError: 503,
}


def status_code_for(exc: ServiceException) -> int:
    for exc_type, status_code in STATUS_CODES.items():
        if isinstance(exc, exc_type):
            return status_code
    return 500


async def service_exception_handler(
    request: Request,
    exc: ServiceException
) -> JSONResponse:
    """
    Handle service layer exceptions.

    Args:
        request: The FastAPI request.
        exc: The service exception.

    Returns:
        JSONResponse with error details.
    """
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"Service error in {request.url.path}: {exc}", exc_info=True)
    else:
        logger.info(f"{exc.__class__.__name__} in {request.url.path}: {exc}")

    content = {
        "success": False,
        "error": str(exc),
        "type": exc.__class__.__name__
    }
    headers = None

    if isinstance(exc, ValidationError) and exc.field:
        content["field"] = exc.field
    elif isinstance(exc, QuotaExceededError):
        content["resource"] = exc.resource
        content["remaining"] = exc.remaining
        content["resets_in"] = exc.resets_in
        headers = {"Retry-After": str(exc.resets_in)}
    elif isinstance(exc, ConflictError):
        content["existing_status"] = exc.existing.status.value
        content["match_id"] = exc.existing.id

    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def http_exception_handler(
    request: Request,
    exc: HTTPException
) -> JSONResponse:
    """Handle FastAPI HTTP exceptions with consistent format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "type": "HTTPException"
        }
    )


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error in {request.url.path}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "type": "InternalError"
        }
    )
