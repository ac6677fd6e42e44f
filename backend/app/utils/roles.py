from fastapi import Depends

from .dependencies import Actor, get_current_user
from .error_handlers import ForbiddenError, ValidationError

ADMIN = "admin"
HR = "hr"
STAFF = "staff"

INTERNAL_ROLES = (ADMIN, HR, STAFF)

# Clients (frontend, exports, query strings) say "employee" where the database says "staff".
INTERNAL_TO_EXTERNAL = {ADMIN: "admin", HR: "hr", STAFF: "employee"}
EXTERNAL_TO_INTERNAL = {v: k for k, v in INTERNAL_TO_EXTERNAL.items()}
EXTERNAL_ROLES = tuple(EXTERNAL_TO_INTERNAL)


def to_external_role(role: str) -> str:
    try:
        return INTERNAL_TO_EXTERNAL[role]
    except KeyError:
        raise ValidationError(f"Unknown role: {role!r}")


def to_internal_role(role: str) -> str:
    try:
        return EXTERNAL_TO_INTERNAL[role]
    except KeyError:
        raise ValidationError(f"Invalid role. Must be one of: {', '.join(EXTERNAL_ROLES)}")


def require_roles(*allowed: str):
    """Dependency factory: resolves the caller and rejects roles outside `allowed` with 403."""
    allowed_set = frozenset(allowed)

    def check_role(actor: Actor = Depends(get_current_user)) -> Actor:
        if actor.role not in allowed_set:
            raise ForbiddenError()
        return actor
    return check_role


admin_only = require_roles(ADMIN)
hr_or_admin = require_roles(ADMIN, HR)
any_role = require_roles(ADMIN, HR, STAFF)
