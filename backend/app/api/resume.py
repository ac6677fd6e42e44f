import logging

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from fastapi.responses import FileResponse, RedirectResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ..database import get_db
from ..models.resume import Resume
from ..services import resume_lifecycle as lifecycle
from ..services.emailer import Mailer, get_mailer
from ..services.file_store import LocalFileStore, get_file_store
from ..utils.dependencies import Actor
from ..utils.roles import admin_only, any_role, hr_or_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resumes", tags=["Resumes"])


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def public_resume(r: Resume, *, include_history: bool = True) -> dict:
    payload = {
        "id": r.id,
        "candidate_name": r.candidate_name,
        "email": r.email,
        "phone": r.phone,
        "position": r.position,
        "experience_years": r.experience_years,
        "status": r.status,
        "employee_feedback": r.employee_feedback,
        "hr_feedback": r.hr_feedback,
        "latest_feedback": r.latest_feedback,
        "hr_owner_name": r.hr_owner_name,
        "resume_file_name": r.resume_file_name,
        "has_file": bool(r.file_handle),
        "created_by": r.created_by,
        "created_at": _iso(r.created_at),
        "updated_at": _iso(r.updated_at),
        "interview": None,
    }
    if r.interview is not None:
        it = r.interview
        payload["interview"] = {
            "date": it.date,
            "time": it.time,
            "mode": it.mode,
            "link": it.link,
            "location": it.location,
            "message": it.message,
            "scheduled_by": it.scheduled_by,
            "scheduled_at": _iso(it.scheduled_at),
        }
    if include_history:
        payload["history"] = [
            {"status": h.status, "note": h.note, "actor_id": h.actor_id, "timestamp": _iso(h.timestamp)}
            for h in r.history
        ]
    return payload


class StatusUpdateIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str | None = None
    note: str | None = None
    hr_name: str | None = Field(default=None, alias="hrName")


class FeedbackIn(BaseModel):
    feedback: str | None = None


class HrOwnerIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    screened_by: str | None = Field(default=None, alias="screenedBy")


class ResumeUpdate(BaseModel):
    candidate_name: str | None = None
    email: str | None = None
    phone: str | None = None
    position: str | None = None
    experience_years: int | None = None


class InterviewScheduleIn(BaseModel):
    date: str | None = None
    time: str | None = None
    mode: str | None = None
    link: str | None = None
    location: str | None = None
    message: str | None = None


@router.post("", status_code=201)
async def create_resume(
    candidate_name: str | None = Form(default=None),
    email: str | None = Form(default=None),
    phone: str | None = Form(default=None),
    position: str | None = Form(default=None),
    experience_years: str | None = Form(default=None),
    file: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(any_role),
    mailer: Mailer = Depends(get_mailer),
    store: LocalFileStore = Depends(get_file_store),
):
    # Validate before touching the blob store so a bad request leaves nothing behind.
    info = lifecycle.validate_candidate_info(
        candidate_name=candidate_name,
        email=email,
        phone=phone,
        position=position,
        experience_years=experience_years,
    )
    stored = await store.save(file) if file is not None and file.filename else None

    # Commit and SMTP send are blocking; keep them off the event loop.
    resume, notification = await run_in_threadpool(
        lifecycle.create_resume, db, info=info, actor=actor, mailer=mailer, stored=stored, store=store
    )
    return {"success": True, "resume": public_resume(resume), "notification": notification.as_dict()}


@router.get("")
def list_resumes(
    status: str | None = Query(default=None),
    q: str | None = Query(default=None),
    limit: int = Query(default=lifecycle.DEFAULT_PAGE_SIZE, ge=1, le=lifecycle.MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    actor: Actor = Depends(any_role),
):
    rows, total = lifecycle.list_resumes(db, actor=actor, status=status, q=q, limit=limit, offset=offset)
    return {
        "success": True,
        "resumes": [public_resume(r, include_history=False) for r in rows],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.get("/mine")
def list_my_resumes(
    limit: int = Query(default=lifecycle.DEFAULT_PAGE_SIZE, ge=1, le=lifecycle.MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    actor: Actor = Depends(any_role),
):
    rows, total = lifecycle.list_resumes(db, actor=actor, mine=True, limit=limit, offset=offset)
    return {"success": True, "resumes": [public_resume(r, include_history=False) for r in rows], "total": total}


@router.get("/{resume_id}")
def get_resume(resume_id: int, db: Session = Depends(get_db), actor: Actor = Depends(any_role)):
    return {"success": True, "resume": public_resume(lifecycle.get_resume(db, resume_id, actor))}


@router.patch("/{resume_id}/status")
def update_status(
    resume_id: int,
    body: StatusUpdateIn,
    db: Session = Depends(get_db),
    actor: Actor = Depends(hr_or_admin),
):
    resume = lifecycle.transition_status(
        db,
        resume_id=resume_id,
        new_status=body.status,
        note=body.note,
        hr_owner_name=body.hr_name,
        actor=actor,
    )
    return {"success": True, "resume": public_resume(resume)}


@router.patch("/{resume_id}/feedback")
def update_feedback(
    resume_id: int,
    body: FeedbackIn,
    db: Session = Depends(get_db),
    actor: Actor = Depends(any_role),
):
    resume = lifecycle.set_feedback(db, resume_id=resume_id, feedback=body.feedback, actor=actor)
    return {"success": True, "resume": public_resume(resume)}


@router.patch("/{resume_id}/hr-owner")
def update_hr_owner(
    resume_id: int,
    body: HrOwnerIn,
    db: Session = Depends(get_db),
    actor: Actor = Depends(hr_or_admin),
):
    resume = lifecycle.set_hr_owner(db, resume_id=resume_id, screened_by=body.screened_by, actor=actor)
    return {"success": True, "resume": public_resume(resume)}


@router.patch("/{resume_id}")
def update_resume(
    resume_id: int,
    body: ResumeUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(admin_only),
):
    resume = lifecycle.update_resume(
        db, resume_id=resume_id, changes=body.model_dump(exclude_unset=True), actor=actor
    )
    return {"success": True, "resume": public_resume(resume)}


@router.delete("/{resume_id}", status_code=204)
def delete_resume(
    resume_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(admin_only),
    store: LocalFileStore = Depends(get_file_store),
):
    lifecycle.delete_resume(db, resume_id=resume_id, actor=actor, store=store)
    return Response(status_code=204)


@router.get("/{resume_id}/download")
def download_resume(
    resume_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(any_role),
    store: LocalFileStore = Depends(get_file_store),
):
    target = lifecycle.resolve_download(db, resume_id=resume_id, actor=actor, store=store)
    if target.url:
        return RedirectResponse(target.url)
    # FileResponse handles streaming efficiently
    return FileResponse(target.path, media_type=target.media_type, filename=target.filename)


@router.post("/{resume_id}/schedule-interview")
def schedule_interview(
    resume_id: int,
    body: InterviewScheduleIn,
    db: Session = Depends(get_db),
    actor: Actor = Depends(hr_or_admin),
    mailer: Mailer = Depends(get_mailer),
):
    resume, notification = lifecycle.schedule_interview(
        db,
        resume_id=resume_id,
        details=lifecycle.InterviewDetails(**body.model_dump()),
        actor=actor,
        mailer=mailer,
    )
    message = (
        "Interview scheduled and email sent."
        if notification.status == "sent"
        else "Interview scheduled; email could not be sent."
    )
    return {
        "success": True,
        "message": message,
        "resume": public_resume(resume),
        "notification": notification.as_dict(),
    }
