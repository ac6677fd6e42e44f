"""
Validation utilities for input validation and error handling.
"""
import re
from pathlib import Path
from typing import Any

from ..models.lead import LEAD_STATUSES
from ..models.resume import RESUME_STATUSES
from .error_handlers import InvalidStatusError, ValidationError, get_error_message

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
ALLOWED_RESUME_EXTENSIONS = {".pdf", ".doc", ".docx"}


def validate_email(email: Any, field_name: str = "Email") -> str:
    """Validate email format and normalise to lower case."""
    if not email or not isinstance(email, str) or not email.strip():
        raise ValidationError(f"{field_name} is required")

    email = email.strip().lower()
    if len(email) > 255:
        raise ValidationError(f"{field_name} too long (max 255 characters)")

    if not re.match(EMAIL_PATTERN, email):
        raise ValidationError(f"Invalid {field_name.lower()} format")

    return email


def validate_password(password: Any) -> None:
    """Validate password strength."""
    if not password or not isinstance(password, str):
        raise ValidationError("Password is required")

    if len(password) < 6:
        raise ValidationError(get_error_message("weak_password"))

    if len(password) > 128:
        raise ValidationError("Password too long (max 128 characters)")


def validate_string_field(
    value: Any,
    field_name: str,
    min_length: int = 1,
    max_length: int = 1000,
    required: bool = True,
) -> str | None:
    """Validate a string field with common rules; blank optional values become None."""
    if value is None:
        if required:
            raise ValidationError(f"{field_name} is required")
        return None

    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")

    value = value.strip()

    if not value:
        if required:
            raise ValidationError(f"{field_name} cannot be empty")
        return None

    if len(value) < min_length:
        raise ValidationError(f"{field_name} must be at least {min_length} characters")

    if len(value) > max_length:
        raise ValidationError(f"{field_name} must not exceed {max_length} characters")

    return value


def validate_experience_years(value: Any) -> int | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        years = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Experience years must be a whole number")
    if years < 0 or years > 80:
        raise ValidationError("Experience years must be between 0 and 80")
    return years


def validate_resume_status(status: Any) -> str:
    if not isinstance(status, str) or status.strip().lower() not in RESUME_STATUSES:
        raise InvalidStatusError(
            f"{get_error_message('invalid_status')} Must be one of: {', '.join(RESUME_STATUSES)}",
            details={"status": status},
        )
    return status.strip().lower()


def validate_lead_status(status: Any) -> str:
    if not isinstance(status, str) or status.strip().lower() not in LEAD_STATUSES:
        raise InvalidStatusError(f"Invalid lead status. Must be one of: {', '.join(LEAD_STATUSES)}")
    return status.strip().lower()


def sanitize_filename(filename: str) -> str:
    """Sanitize filename to prevent directory traversal and other attacks."""
    if not filename:
        raise ValidationError("Filename is required")

    filename = Path(filename.replace("\\", "/")).name
    filename = filename.replace("\x00", "").replace("..", "_").lstrip(".")

    if len(filename) > 255:
        raise ValidationError("Filename too long")

    if not filename or filename == "_":
        raise ValidationError("Invalid filename")

    return filename


def validate_resume_filename(filename: str) -> tuple[str, str]:
    """Return (sanitized filename, lower-case extension) for an accepted resume upload."""
    clean = sanitize_filename(filename)
    ext = Path(clean).suffix.lower()
    if ext not in ALLOWED_RESUME_EXTENSIONS:
        raise ValidationError(get_error_message("invalid_file_type"))
    return clean, ext
