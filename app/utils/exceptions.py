from fastapi import HTTPException, status


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES — Machine-readable constants for frontend switch/case
# ═══════════════════════════════════════════════════════════════════════════════
class ErrorCode:
    VALIDATION_ERROR        = "VALIDATION_ERROR"
    INVALID_CREDENTIALS     = "INVALID_CREDENTIALS"
    UNAUTHENTICATED         = "UNAUTHENTICATED"
    ALREADY_EXISTS          = "ALREADY_EXISTS"
    STORE_UNAVAILABLE       = "STORE_UNAVAILABLE"
    INTERNAL_SERVER_ERROR   = "INTERNAL_SERVER_ERROR"


# ═══════════════════════════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════════════════════════
class AppException(HTTPException):
    """
    Base exception for all application-level errors.
    Carries a machine-readable error_code for frontend handling.
    """
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: str,
        details: list | None = None,
        field: str | None = None,
        headers: dict | None = None,
    ):
        super().__init__(status_code=status_code, headers=headers, detail={
            "message": message,
            "error": {
                "code": error_code,
                "details": details,
                "field": field,
            }
        })

    @property
    def error_code(self) -> str:
        return self.detail["error"]["code"]


# ═══════════════════════════════════════════════════════════════════════════════
# CONCRETE EXCEPTIONS
# ═══════════════════════════════════════════════════════════════════════════════

class InvalidCredentialsException(AppException):
    def __init__(self):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            "Invalid email or password",
            ErrorCode.INVALID_CREDENTIALS,
        )


class UnauthenticatedException(AppException):
    """
    Uniform rejection for every failed authentication: missing, malformed,
    forged, expired or revoked credentials all look the same to the caller.
    """
    def __init__(self):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            "Authentication required",
            ErrorCode.UNAUTHENTICATED,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AlreadyExistsException(AppException):
    def __init__(self, message: str = "Record already exists", field: str | None = None):
        super().__init__(status.HTTP_409_CONFLICT, message, ErrorCode.ALREADY_EXISTS, field=field)


class StoreUnavailableException(AppException):
    def __init__(self):
        super().__init__(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "The session store is temporarily unavailable. Please retry.",
            ErrorCode.STORE_UNAVAILABLE,
        )
