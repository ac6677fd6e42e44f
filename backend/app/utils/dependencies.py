from dataclasses import dataclass

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .error_handlers import AuthError, get_error_message
from .jwt import JWTError, decode_access_token

_bearer = HTTPBearer(auto_error=False)

_KNOWN_ROLES = {"admin", "hr", "staff"}


@dataclass(frozen=True)
class Actor:
    """The authenticated caller. `role` is the internal role name."""

    id: int
    role: str
    name: str | None = None
    email: str | None = None


def authenticate(token: str) -> Actor:
    try:
        claims = decode_access_token(token)
    except JWTError:
        raise AuthError(get_error_message("session_expired"))

    role = claims.get("role")
    try:
        actor_id = int(claims.get("sub"))
    except (TypeError, ValueError):
        raise AuthError()
    if role not in _KNOWN_ROLES:
        raise AuthError()

    return Actor(id=actor_id, role=role, name=claims.get("name"), email=claims.get("email"))


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Actor:
    if credentials is None or not credentials.credentials:
        raise AuthError(get_error_message("unauthorized"))
    return authenticate(credentials.credentials)
