from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..models.employee import Employee
from ..utils.dependencies import Actor
from ..utils.error_handlers import (
    ConflictError,
    NotFoundError,
    ValidationError,
    get_error_message,
    handle_database_error,
)
from ..utils.roles import admin_only, hr_or_admin
from ..utils.validation import validate_email, validate_string_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["Employees"])

EMPLOYEE_ROLES = ("employee", "hr")


class EmployeeCreate(BaseModel):
    name: str | None = None
    email: str | None = None
    department: str | None = None
    role: str | None = None


class EmployeeUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    department: str | None = None
    role: str | None = None


def _public_employee(e: Employee) -> dict:
    return {
        "id": e.id,
        "name": e.name,
        "email": e.email,
        "department": e.department,
        "role": e.role,
        "join_date": e.join_date.isoformat() if e.join_date else None,
        "created_by": e.created_by,
        "created_at": e.created_at.isoformat() if e.created_at else None,
    }


def _validate_role(role: str | None) -> str:
    value = (role or "employee").strip().lower()
    if value not in EMPLOYEE_ROLES:
        raise ValidationError(f"Invalid role. Must be one of: {', '.join(EMPLOYEE_ROLES)}")
    return value


def _ensure_email_free(db: Session, email: str, *, exclude_id: int | None = None) -> None:
    query = db.query(Employee).filter(Employee.email == email)
    if exclude_id is not None:
        query = query.filter(Employee.id != exclude_id)
    if query.first():
        raise ConflictError(get_error_message("employee_exists"))


def _get_employee(db: Session, employee_id: int) -> Employee:
    e = db.query(Employee).filter(Employee.id == int(employee_id)).first()
    if not e:
        raise NotFoundError(get_error_message("employee_not_found"))
    return e


@router.get("")
def list_employees(
    role: str | None = Query(default=None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(hr_or_admin),
):
    query = db.query(Employee)
    if role:
        query = query.filter(Employee.role == _validate_role(role))
    rows = query.order_by(Employee.created_at.desc(), Employee.id.desc()).all()
    return {"success": True, "employees": [_public_employee(e) for e in rows]}


@router.post("", status_code=201)
def create_employee(
    body: EmployeeCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(admin_only),
):
    name = validate_string_field(body.name, "Name", max_length=255)
    email = validate_email(body.email)
    department = validate_string_field(body.department, "Department", max_length=120)
    role = _validate_role(body.role)
    _ensure_email_free(db, email)

    employee = Employee(name=name, email=email, department=department, role=role, created_by=actor.id)
    try:
        db.add(employee)
        db.commit()
        db.refresh(employee)
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "creating employee")
    return {"success": True, "employee": _public_employee(employee)}


@router.patch("/{employee_id}")
def update_employee(
    employee_id: int,
    body: EmployeeUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(admin_only),
):
    employee = _get_employee(db, employee_id)
    changes = body.model_dump(exclude_unset=True)

    if "name" in changes:
        employee.name = validate_string_field(changes["name"], "Name", max_length=255)
    if "email" in changes:
        email = validate_email(changes["email"])
        _ensure_email_free(db, email, exclude_id=employee.id)
        employee.email = email
    if "department" in changes:
        employee.department = validate_string_field(changes["department"], "Department", max_length=120)
    if "role" in changes:
        employee.role = _validate_role(changes["role"])

    try:
        db.commit()
        db.refresh(employee)
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "updating employee")
    return {"success": True, "employee": _public_employee(employee)}


@router.delete("/{employee_id}", status_code=204)
def delete_employee(
    employee_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(admin_only),
):
    employee = _get_employee(db, employee_id)
    try:
        db.delete(employee)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "deleting employee")
    logger.info("Employee %s deleted by user %s", employee_id, actor.id)
    return Response(status_code=204)
