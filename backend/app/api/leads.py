from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..models.lead import Lead
from ..models.resume import Resume
from ..utils.dependencies import Actor
from ..utils.error_handlers import NotFoundError, get_error_message, handle_database_error
from ..utils.roles import admin_only, hr_or_admin
from ..utils.validation import validate_email, validate_lead_status, validate_string_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leads", tags=["Leads"])

_TEXT_FIELDS = {
    "phone": ("Phone", 50),
    "source": ("Source", 120),
    "position": ("Position", 150),
    "notes": ("Notes", 5000),
}


class LeadCreate(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    source: str | None = None
    position: str | None = None
    notes: str | None = None


class LeadUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    source: str | None = None
    position: str | None = None
    notes: str | None = None
    status: str | None = None
    resume_id: int | None = None


def _public_lead(lead: Lead) -> dict:
    return {
        "id": lead.id,
        "name": lead.name,
        "email": lead.email,
        "phone": lead.phone,
        "source": lead.source,
        "position": lead.position,
        "notes": lead.notes,
        "status": lead.status,
        "resume_id": lead.resume_id,
        "created_by": lead.created_by,
        "created_at": lead.created_at.isoformat() if lead.created_at else None,
        "updated_at": lead.updated_at.isoformat() if lead.updated_at else None,
    }


def _optional_email(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return validate_email(value)


def _get_lead(db: Session, lead_id: int) -> Lead:
    lead = db.query(Lead).filter(Lead.id == int(lead_id)).first()
    if not lead:
        raise NotFoundError(get_error_message("lead_not_found"))
    return lead


@router.post("", status_code=201)
def create_lead(
    body: LeadCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(hr_or_admin),
):
    lead = Lead(
        name=validate_string_field(body.name, "Name", max_length=255),
        email=_optional_email(body.email),
        status="new",
        created_by=actor.id,
    )
    for field, (label, max_length) in _TEXT_FIELDS.items():
        setattr(lead, field, validate_string_field(getattr(body, field), label, max_length=max_length, required=False))

    try:
        db.add(lead)
        db.commit()
        db.refresh(lead)
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "creating lead")
    return {"success": True, "lead": _public_lead(lead)}


@router.get("")
def list_leads(
    status: str | None = Query(default=None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(hr_or_admin),
):
    query = db.query(Lead)
    if status:
        query = query.filter(Lead.status == validate_lead_status(status))
    rows = query.order_by(Lead.created_at.desc(), Lead.id.desc()).all()
    return {"success": True, "leads": [_public_lead(lead) for lead in rows]}


@router.patch("/{lead_id}")
def update_lead(
    lead_id: int,
    body: LeadUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(hr_or_admin),
):
    lead = _get_lead(db, lead_id)
    changes = body.model_dump(exclude_unset=True)

    if "name" in changes:
        lead.name = validate_string_field(changes["name"], "Name", max_length=255)
    if "email" in changes:
        lead.email = _optional_email(changes["email"])
    for field, (label, max_length) in _TEXT_FIELDS.items():
        if field in changes:
            setattr(lead, field, validate_string_field(changes[field], label, max_length=max_length, required=False))
    if "status" in changes:
        lead.status = validate_lead_status(changes["status"])
    if "resume_id" in changes:
        resume_id = changes["resume_id"]
        if resume_id is not None and not db.query(Resume.id).filter(Resume.id == int(resume_id)).first():
            raise NotFoundError(get_error_message("resume_not_found"))
        lead.resume_id = resume_id

    try:
        db.commit()
        db.refresh(lead)
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "updating lead")
    return {"success": True, "lead": _public_lead(lead)}


@router.delete("/{lead_id}", status_code=204)
def delete_lead(
    lead_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(admin_only),
):
    lead = _get_lead(db, lead_id)
    try:
        db.delete(lead)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "deleting lead")
    return Response(status_code=204)
