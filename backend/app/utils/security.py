import bcrypt

from .error_handlers import ValidationError

# bcrypt only looks at the first 72 bytes; newer builds raise past that instead of truncating.
_BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    if not password:
        raise ValidationError("Password is required")

    pw_bytes = password.encode("utf-8")
    if len(pw_bytes) > _BCRYPT_MAX_BYTES:
        raise ValidationError("Password must be 72 bytes or less")

    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    if not password or not hashed:
        return False
    pw_bytes = password.encode("utf-8")
    if len(pw_bytes) > _BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False
