from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..models.user import User
from ..utils.dependencies import Actor
from ..utils.error_handlers import (
    ConflictError,
    NotFoundError,
    ValidationError,
    get_error_message,
    handle_database_error,
)
from ..utils.roles import admin_only, to_internal_role
from ..utils.validation import validate_email, validate_string_field
from .auth import RegisterRequest, create_account, public_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


class UserUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    role: str | None = None  # employee / hr / admin
    department: str | None = None


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user:
        raise NotFoundError(get_error_message("user_not_found"))
    return user


@router.get("")
def list_users(
    role: str | None = Query(default=None, description="employee | hr | admin"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(admin_only),
):
    query = db.query(User)
    if role:
        query = query.filter(User.role == to_internal_role(role.strip().lower()))
    rows = query.order_by(User.created_at.desc(), User.id.desc()).all()
    # safe fields only
    return {"success": True, "users": [public_user(u) for u in rows]}


@router.post("", status_code=201)
def create_user(
    body: RegisterRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(admin_only),
):
    user = create_account(
        db,
        name=body.name,
        email=body.email,
        password=body.password,
        role=to_internal_role((body.role or "employee").strip().lower()),
        department=body.department,
        created_by=actor.id,
    )
    return {"success": True, "user": public_user(user)}


@router.patch("/{user_id}")
def update_user(
    user_id: int,
    body: UserUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(admin_only),
):
    user = _get_user(db, user_id)
    changes = body.model_dump(exclude_unset=True)

    if "name" in changes:
        user.name = validate_string_field(changes["name"], "Name", max_length=255)
    if "email" in changes:
        email = validate_email(changes["email"])
        if db.query(User).filter(User.email == email, User.id != user.id).first():
            raise ConflictError(get_error_message("email_exists"))
        user.email = email
    if "role" in changes:
        user.role = to_internal_role((changes["role"] or "").strip().lower())
    if "department" in changes:
        user.department = validate_string_field(changes["department"], "Department", max_length=120, required=False)

    try:
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "updating user")
    return {"success": True, "user": public_user(user)}


@router.delete("/{user_id}", status_code=204)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(admin_only),
):
    if int(user_id) == actor.id:
        raise ValidationError("You cannot delete your own account")
    user = _get_user(db, user_id)
    try:
        db.delete(user)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "deleting user")
    logger.info("User %s deleted by user %s", user_id, actor.id)
    return Response(status_code=204)
