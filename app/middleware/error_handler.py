import logging
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from app.utils.exceptions import AppException, ErrorCode, StoreUnavailableException

logger = logging.getLogger(__name__)


def _envelope(
    status_code: int,
    message: str,
    error: dict,
    headers: dict | None = None,
) -> JSONResponse:
    """Every error leaves the API as {success: false, message, error: {code, details, field}}."""
    return JSONResponse(
        status_code=status_code,
        headers=headers,
        content={
            "success": False,
            "message": message,
            "error": {
                "code":    error.get("code", ErrorCode.INTERNAL_SERVER_ERROR),
                "details": error.get("details"),
                "field":   error.get("field"),
            },
        },
    )


def _render(exc: AppException) -> JSONResponse:
    return _envelope(
        exc.status_code,
        exc.detail.get("message", "An error occurred"),
        exc.detail.get("error", {}),
        headers=exc.headers,
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """InvalidCredentials, Unauthenticated, AlreadyExists and StoreUnavailable."""
    return _render(exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # loc looks like ("body", "email"); the transport prefix means nothing to clients
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body") or "unknown",
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return _envelope(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error. Please check your input.",
        {"code": ErrorCode.VALIDATION_ERROR, "details": details},
    )


async def store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Connection-level driver errors that slipped past ``store_errors``.

    Services translate these themselves; this keeps a lost connection in an
    unwrapped call from surfacing as a 500 instead of a retryable 503.
    """
    logger.error(f"Store unavailable on {request.method} {request.url.path}: {exc}")
    return _render(StoreUnavailableException())


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
    return _envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred. Please try again later.",
        {"code": ErrorCode.INTERNAL_SERVER_ERROR},
    )
