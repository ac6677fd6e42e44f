"""
Centralized error handling and user-friendly error messages.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# User-friendly error messages
ERROR_MESSAGES = {
    # Authentication
    "invalid_credentials": "Invalid email or password. Please try again.",
    "email_exists": "An account with this email already exists. Please login instead.",
    "weak_password": "Password must be at least 6 characters long.",
    "session_expired": "Your session has expired. Please login again.",
    "admin_exists": "An admin account already exists.",

    # File uploads
    "file_too_large": "File is too large. Maximum size is 10MB.",
    "invalid_file_type": "Only PDF/DOC/DOCX files are allowed.",
    "file_missing": "Resume file not found.",
    "file_storage_failed": "Failed to store the uploaded file. Please try again.",

    # Resumes
    "resume_not_found": "Resume not found.",
    "invalid_status": "Invalid status.",
    "candidate_required": "Candidate name and email are required.",
    "feedback_required": "Feedback must be a non-empty string.",

    # Rosters
    "employee_exists": "Employee already exists.",
    "employee_not_found": "Employee not found.",
    "user_not_found": "User not found.",
    "lead_not_found": "Lead not found.",

    # Notifications
    "email_not_configured": "Email not configured on server.",
    "email_failed": "Failed to send email.",

    # General
    "unauthorized": "Please login to access this feature.",
    "forbidden": "You don't have permission to access this resource.",
    "not_found": "The requested resource was not found.",
    "server_error": "Something went wrong on our end. Please try again later.",
    "database_error": "Database connection issue. Please try again later.",
    "validation_error": "Please check your input and try again.",
}


def get_error_message(error_key: str, default: str | None = None) -> str:
    """Get a user-friendly error message."""
    return ERROR_MESSAGES.get(error_key, default or ERROR_MESSAGES["server_error"])


class AppError(Exception):
    """Base application error."""
    def __init__(self, message: str, status_code: int = 500, details: dict | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing or malformed input."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=400, details=details)


class InvalidStatusError(ValidationError):
    """Requested status is not one of the resume statuses."""


class MissingContactError(AppError):
    """Candidate has no email on file, so nothing can be sent."""
    def __init__(self, message: str = "Candidate email not found; cannot send invite.", details: dict | None = None):
        super().__init__(message, status_code=400, details=details)


class AuthError(AppError):
    """Missing or invalid credential."""
    def __init__(self, message: str = ERROR_MESSAGES["unauthorized"], details: dict | None = None):
        super().__init__(message, status_code=401, details=details)


class ForbiddenError(AppError):
    """Role not permitted for this operation."""
    def __init__(self, message: str = ERROR_MESSAGES["forbidden"], details: dict | None = None):
        super().__init__(message, status_code=403, details=details)


class NotFoundError(AppError):
    """Resource not found error."""
    def __init__(self, message: str = ERROR_MESSAGES["not_found"], details: dict | None = None):
        super().__init__(message, status_code=404, details=details)


class ConflictError(AppError):
    """Uniqueness violation."""
    def __init__(self, message: str = "This record already exists.", details: dict | None = None):
        super().__init__(message, status_code=409, details=details)


class FileTooLargeError(AppError):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=413, details=details)


class StorageError(AppError):
    """Blob or database write failure."""
    def __init__(self, message: str = "Storage operation failed", details: dict | None = None):
        super().__init__(message, status_code=500, details=details)


class NotifyError(AppError):
    """
    Outbound notification failed after the write was committed.

    Never rendered as an HTTP error: callers turn it into a `notification` outcome
    on an otherwise successful response.
    """
    def __init__(self, message: str = "Notification could not be sent", details: dict | None = None):
        super().__init__(message, status_code=502, details=details)


def handle_database_error(error: Exception, operation: str = "") -> AppError:
    """Map a failed database write onto the error taxonomy."""
    logger.error("Database error during %s: %s", operation, error)

    error_str = str(error).lower()
    if isinstance(error, IntegrityError) and ("duplicate" in error_str or "unique" in error_str):
        return ConflictError("This record already exists. Please check your input.")

    if isinstance(error, OperationalError) or "connection" in error_str:
        return StorageError(get_error_message("database_error"))

    return StorageError(f"Failed while {operation}" if operation else get_error_message("server_error"))


def create_error_response(
    status_code: int,
    message: str,
    details: dict | None = None
) -> JSONResponse:
    """Create a standardized error response."""
    content = {
        "success": False,
        "error": message,
        "status_code": status_code,
    }

    if details:
        content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return create_error_response(exc.status_code, exc.message, exc.details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return create_error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err.get("loc", ()) if p != "body") for err in exc.errors()]
        return create_error_response(
            400,
            get_error_message("validation_error"),
            {"fields": [f for f in fields if f]},
        )

    @app.exception_handler(OperationalError)
    async def sqlalchemy_operational_error_handler(request: Request, exc: OperationalError):
        logger.exception("Database OperationalError: %s", exc)
        return create_error_response(503, get_error_message("database_error"))

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Database SQLAlchemyError: %s", exc)
        return create_error_response(500, get_error_message("database_error"))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return create_error_response(500, get_error_message("server_error"))
