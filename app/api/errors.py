"""
API error handling and exception mapping.

Domain and infrastructure exceptions raised by the services are converted
into ``ErrorResponse`` bodies with a matching HTTP status code, so routers
only deal with the happy path.
"""

from typing import Any, Dict, Type

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException

from app.api.schemas import ErrorResponse
from app.domain.exceptions import (
    CacheException,
    DomainException,
    EntityNotFoundException,
    ImportFormatException,
    LLMException,
    LLMPaymentRequiredException,
    LLMRateLimitException,
    StageTransitionException,
    UnauthorizedAccessException,
    ValidationException,
)

logger = structlog.get_logger(__name__)

# Most specific first; the first matching class wins
STATUS_CODES: Dict[Type[DomainException], tuple[int, str]] = {
    EntityNotFoundException: (status.HTTP_404_NOT_FOUND, "not_found"),
    UnauthorizedAccessException: (status.HTTP_403_FORBIDDEN, "unauthorized"),
    ValidationException: (status.HTTP_400_BAD_REQUEST, "validation_error"),
    ImportFormatException: (status.HTTP_400_BAD_REQUEST, "import_format_error"),
    StageTransitionException: (status.HTTP_400_BAD_REQUEST, "stage_transition_error"),
    LLMRateLimitException: (status.HTTP_429_TOO_MANY_REQUESTS, "rate_limited"),
    LLMPaymentRequiredException: (status.HTTP_402_PAYMENT_REQUIRED, "payment_required"),
    LLMException: (status.HTTP_502_BAD_GATEWAY, "ai_gateway_error"),
    CacheException: (status.HTTP_503_SERVICE_UNAVAILABLE, "cache_unavailable"),
}


def _error_response(
    status_code: int, error: str, message: str, details: Any = None
) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, details=details)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def status_for(exc: DomainException) -> tuple[int, str]:
    for exc_type, mapping in STATUS_CODES.items():
        if isinstance(exc, exc_type):
            return mapping
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "domain_error"


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    status_code, error = status_for(exc)
    details = getattr(exc, "details", None) or None
    logger.warning(
        "Domain error",
        error=error,
        message=str(exc),
        path=request.url.path,
        status_code=status_code,
    )
    return _error_response(status_code, error, str(exc), details)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    logger.warning("Request validation failed", path=request.url.path, errors=len(errors))

    formatted = [
        f"{' -> '.join(str(loc) for loc in error['loc'])}: {error['msg']}"
        for error in errors
    ]
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "request_validation_error",
        "Validation failed: " + "; ".join(formatted),
        jsonable_encoder(errors),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    logger.warning("HTTP exception", status_code=exc.status_code, detail=str(exc.detail))
    response = _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_server_error",
        "An unexpected error occurred",
    )


def setup_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
