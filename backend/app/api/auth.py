from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..models.user import User
from ..utils.dependencies import Actor
from ..utils.error_handlers import (
    AuthError,
    ConflictError,
    ValidationError,
    get_error_message,
    handle_database_error,
)
from ..utils.jwt import create_access_token
from ..utils.roles import ADMIN, HR, STAFF, admin_only, any_role, to_external_role, to_internal_role
from ..utils.security import hash_password, verify_password
from ..utils.validation import validate_email, validate_password, validate_string_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

# Public signup never creates admins; those come from seed-admin or /auth/register.
PUBLIC_SIGNUP_ROLES = {HR, STAFF}


class SignupRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    role: str | None = None  # employee / hr


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class SeedAdminRequest(BaseModel):
    name: str = "Admin"
    email: str | None = None
    password: str | None = None


class RegisterRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    role: str | None = None  # employee / hr / admin
    department: str | None = None


def public_user(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": to_external_role(user.role),
        "department": user.department or "",
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def issue_token(user: User) -> str:
    # Token carries the internal role; clients only ever see the external name.
    return create_access_token(
        {"sub": str(user.id), "role": user.role, "email": user.email, "name": user.name}
    )


def create_account(
    db: Session,
    *,
    name: str | None,
    email: str | None,
    password: str | None,
    role: str,
    department: str | None = None,
    created_by: int | None = None,
) -> User:
    """Validate and persist a login-bearing account. `role` is internal."""
    clean_name = validate_string_field(name, "Name", max_length=255)
    clean_email = validate_email(email)
    validate_password(password)
    clean_department = validate_string_field(department, "Department", max_length=120, required=False)

    if db.query(User).filter(User.email == clean_email).first():
        raise ConflictError(get_error_message("email_exists"))

    user = User(
        name=clean_name,
        email=clean_email,
        password=hash_password(password),
        role=role,
        department=clean_department,
        created_by=created_by,
    )
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "creating user")
    logger.info("Account %s created with role %s", user.id, user.role)
    return user


@router.post("/signup", status_code=201)
def signup(payload: SignupRequest, db: Session = Depends(get_db)):
    role = to_internal_role((payload.role or "employee").strip().lower())
    if role not in PUBLIC_SIGNUP_ROLES:
        raise ValidationError("Admin accounts cannot be created through signup")

    user = create_account(
        db, name=payload.name, email=payload.email, password=payload.password, role=role
    )
    return {
        "message": "User created successfully",
        "user": public_user(user),
        "access_token": issue_token(user),
        "token_type": "bearer",
    }


@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    email = validate_email(payload.email)
    if not payload.password:
        raise ValidationError("Password is required")

    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(payload.password, user.password):
        raise AuthError(get_error_message("invalid_credentials"))

    return {
        "access_token": issue_token(user),
        "token_type": "bearer",
        "user": public_user(user),
    }


@router.post("/seed-admin", status_code=201)
def seed_admin(payload: SeedAdminRequest, db: Session = Depends(get_db)):
    """One-time bootstrap of the first admin account."""
    if db.query(User).filter(User.role == ADMIN).first():
        raise ConflictError(get_error_message("admin_exists"))

    user = create_account(
        db, name=payload.name, email=payload.email, password=payload.password, role=ADMIN
    )
    return {"id": user.id, "user": public_user(user)}


@router.post("/register", status_code=201)
def register(
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(admin_only),
):
    role = to_internal_role((payload.role or "employee").strip().lower())
    user = create_account(
        db,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=role,
        department=payload.department,
        created_by=actor.id,
    )
    return {"id": user.id, "user": public_user(user)}


@router.get("/me")
def me(db: Session = Depends(get_db), actor: Actor = Depends(any_role)):
    user = db.query(User).filter(User.id == actor.id).first()
    if not user:
        raise AuthError("Invalid user")
    return {"success": True, "user": public_user(user)}


@router.post("/logout")
def logout():
    return {"message": "Logged out successfully"}
