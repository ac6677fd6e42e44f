"""
Resume lifecycle: creation, status transitions, feedback, interview scheduling,
corrections, deletion and file download resolution.

Status graph is fully connected: HR/admin may move a resume from any status to any
other status (re-screening and corrections are routine), and every move is recorded.
The history log is append-only; rows are inserted and never updated or reordered.

Side effects follow one rule: persist first, then notify. A failed email is logged and
returned as a NotificationResult next to the committed record, never rolled back.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import utcnow
from ..models.resume import DEFAULT_RESUME_STATUS, Resume, ResumeHistory, ResumeInterview
from ..utils.dependencies import Actor
from ..utils.error_handlers import (
    AppError,
    ForbiddenError,
    MissingContactError,
    NotFoundError,
    ValidationError,
    get_error_message,
    handle_database_error,
)
from ..utils.roles import ADMIN, HR, STAFF, to_external_role
from ..utils.validation import (
    validate_email,
    validate_experience_years,
    validate_resume_status,
    validate_string_field,
)
from .emailer import Mailer, NotificationResult, deliver, render_interview_scheduled, render_resume_received
from .file_store import LocalFileStore, StoredFile, is_url_handle

logger = logging.getLogger(__name__)

# History labels beyond the four resume statuses.
INTERVIEW_SCHEDULED = "interview_scheduled"
FEEDBACK_UPDATED = "feedback_updated"

TO_BE_CONFIRMED = "To be confirmed"
DEFAULT_INTERVIEW_MODE = "online"
LINK_PLACEHOLDER = "Link will be shared later"
LOCATION_PLACEHOLDER = "Office location will be shared later"

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200

_UPDATABLE_FIELDS = ("candidate_name", "email", "phone", "position", "experience_years")


@dataclass(frozen=True)
class CandidateInfo:
    candidate_name: str
    email: str
    phone: str | None = None
    position: str | None = None
    experience_years: int | None = None


@dataclass(frozen=True)
class InterviewDetails:
    date: str | None = None
    time: str | None = None
    mode: str | None = None
    link: str | None = None
    location: str | None = None
    message: str | None = None


@dataclass(frozen=True)
class DownloadTarget:
    filename: str
    media_type: str
    url: str | None = None
    path: Path | None = None


def _require(actor: Actor, *roles: str) -> None:
    if actor.role not in roles:
        raise ForbiddenError()


def _commit(db: Session, operation: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, operation)


def _append_history(resume: Resume, *, label: str, note: str, actor: Actor) -> ResumeHistory:
    entry = ResumeHistory(status=label, note=note, actor_id=actor.id, timestamp=utcnow())
    resume.history.append(entry)
    resume.updated_at = utcnow()
    return entry


def validate_candidate_info(
    *,
    candidate_name: Any,
    email: Any,
    phone: Any = None,
    position: Any = None,
    experience_years: Any = None,
) -> CandidateInfo:
    if not (isinstance(candidate_name, str) and candidate_name.strip()) or not (isinstance(email, str) and email.strip()):
        raise ValidationError(get_error_message("candidate_required"))
    return CandidateInfo(
        candidate_name=validate_string_field(candidate_name, "Candidate name", max_length=255),
        email=validate_email(email, "Candidate email"),
        phone=validate_string_field(phone, "Phone", max_length=50, required=False),
        position=validate_string_field(position, "Position", max_length=150, required=False),
        experience_years=validate_experience_years(experience_years),
    )


def get_resume(db: Session, resume_id: int, actor: Actor | None = None) -> Resume:
    """Fetch a resume; staff callers only resolve records they created."""
    resume = db.query(Resume).filter(Resume.id == int(resume_id)).first()
    if not resume:
        raise NotFoundError(get_error_message("resume_not_found"))
    if actor is not None and actor.role == STAFF and resume.created_by != actor.id:
        raise NotFoundError(get_error_message("resume_not_found"))
    return resume


def create_resume(
    db: Session,
    *,
    info: CandidateInfo,
    actor: Actor,
    mailer: Mailer,
    stored: StoredFile | None = None,
    store: LocalFileStore | None = None,
) -> tuple[Resume, NotificationResult]:
    _require(actor, ADMIN, HR, STAFF)

    resume = Resume(
        candidate_name=info.candidate_name,
        email=info.email,
        phone=info.phone,
        position=info.position,
        experience_years=info.experience_years,
        status=DEFAULT_RESUME_STATUS,
        created_by=actor.id,
        resume_file_name=stored.original_filename if stored else None,
        file_handle=stored.handle if stored else None,
        content_type=stored.content_type if stored else None,
        size_bytes=stored.size_bytes if stored else None,
    )
    resume.history.append(
        ResumeHistory(status=DEFAULT_RESUME_STATUS, note="Created", actor_id=actor.id, timestamp=utcnow())
    )
    db.add(resume)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        if stored and store:
            try:
                store.delete(stored.handle)
            except (OSError, AppError) as cleanup_error:
                logger.warning("Orphaned upload %s left behind: %s", stored.handle, cleanup_error)
        raise handle_database_error(e, "saving resume")
    db.refresh(resume)
    logger.info("Resume %s created by user %s", resume.id, actor.id)

    subject, text, html_body = render_resume_received(
        candidate_name=resume.candidate_name, position=resume.position
    )
    notification = deliver(mailer, to=resume.email, subject=subject, text=text, html_body=html_body)
    return resume, notification


def list_resumes(
    db: Session,
    *,
    actor: Actor,
    status: str | None = None,
    q: str | None = None,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
    mine: bool = False,
) -> tuple[list[Resume], int]:
    """Newest first. Staff (or `mine=True`) only ever see resumes they created."""
    query = db.query(Resume)
    if mine or actor.role == STAFF:
        query = query.filter(Resume.created_by == actor.id)
    if status:
        query = query.filter(Resume.status == validate_resume_status(status))
    term = (q or "").strip()
    if term:
        # `%` and `_` in the term match literally.
        query = query.filter(
            or_(
                Resume.candidate_name.icontains(term, autoescape=True),
                Resume.email.icontains(term, autoescape=True),
                Resume.phone.icontains(term, autoescape=True),
                Resume.position.icontains(term, autoescape=True),
            )
        )

    limit = max(1, min(int(limit), MAX_PAGE_SIZE))
    offset = max(0, int(offset))
    total = query.count()
    rows = query.order_by(Resume.created_at.desc(), Resume.id.desc()).offset(offset).limit(limit).all()
    return rows, total


def transition_status(
    db: Session,
    *,
    resume_id: int,
    new_status: Any,
    actor: Actor,
    note: str | None = None,
    hr_owner_name: str | None = None,
) -> Resume:
    _require(actor, ADMIN, HR)
    status = validate_resume_status(new_status)
    owner = validate_string_field(hr_owner_name, "HR name", max_length=255, required=False)
    resume = get_resume(db, resume_id)

    previous = resume.status
    resume.status = status
    if owner:
        resume.hr_owner_name = owner
    _append_history(
        resume,
        label=status,
        note=(note or "").strip() or f"Status changed to {status}",
        actor=actor,
    )
    _commit(db, "updating status")
    db.refresh(resume)
    logger.info("Resume %s status %s -> %s by user %s", resume.id, previous, status, actor.id)
    return resume


def set_feedback(db: Session, *, resume_id: int, feedback: Any, actor: Actor) -> Resume:
    if not isinstance(feedback, str) or not feedback.strip():
        raise ValidationError(get_error_message("feedback_required"))
    if len(feedback) > 5000:
        raise ValidationError("Feedback must not exceed 5000 characters")
    resume = get_resume(db, resume_id, actor)

    if actor.role == STAFF:
        resume.employee_feedback = feedback
    else:
        resume.hr_feedback = feedback
    resume.latest_feedback = feedback
    _append_history(
        resume,
        label=FEEDBACK_UPDATED,
        note=f"Feedback updated by {to_external_role(actor.role)}",
        actor=actor,
    )
    _commit(db, "updating feedback")
    db.refresh(resume)
    return resume


def set_hr_owner(db: Session, *, resume_id: int, screened_by: Any, actor: Actor) -> Resume:
    _require(actor, ADMIN, HR)
    owner = validate_string_field(screened_by, "Screened by", max_length=255, required=False)
    resume = get_resume(db, resume_id)
    resume.hr_owner_name = owner
    resume.updated_at = utcnow()
    _commit(db, "updating HR owner")
    db.refresh(resume)
    return resume


def schedule_interview(
    db: Session,
    *,
    resume_id: int,
    details: InterviewDetails,
    actor: Actor,
    mailer: Mailer,
) -> tuple[Resume, NotificationResult]:
    """
    Overwrite the resume's single interview record and email the candidate.

    Absent date/time fall back to "To be confirmed"; absent link/location fall back to
    a placeholder chosen by mode (online -> link, anything else -> location).
    """
    _require(actor, ADMIN, HR)
    resume = get_resume(db, resume_id)
    if not (resume.email or "").strip():
        raise MissingContactError()

    date = (details.date or "").strip() or TO_BE_CONFIRMED
    time = (details.time or "").strip() or TO_BE_CONFIRMED
    mode = (details.mode or "").strip() or DEFAULT_INTERVIEW_MODE
    link = (details.link or "").strip() or None
    location = (details.location or "").strip() or None
    if mode.lower() == "online":
        link_or_location = link or LINK_PLACEHOLDER
    else:
        link_or_location = location or LOCATION_PLACEHOLDER
    message = (details.message or "").strip() or (
        f"Dear {resume.candidate_name or 'Candidate'},\n\n"
        "You have been shortlisted for an interview. Please find the details below."
    )

    interview = resume.interview
    if interview is None:
        interview = ResumeInterview()
        resume.interview = interview
    interview.date = date
    interview.time = time
    interview.mode = mode
    interview.link = link
    interview.location = location
    interview.message = message
    interview.scheduled_by = actor.id
    interview.scheduled_at = utcnow()

    _append_history(
        resume,
        label=INTERVIEW_SCHEDULED,
        note=f"Interview scheduled on {date} {time} ({mode})",
        actor=actor,
    )
    _commit(db, "scheduling interview")
    db.refresh(resume)
    logger.info("Interview scheduled for resume %s by user %s", resume.id, actor.id)

    subject, text, html_body = render_interview_scheduled(
        message=message, date=date, time=time, mode=mode, link_or_location=link_or_location
    )
    notification = deliver(mailer, to=resume.email, subject=subject, text=text, html_body=html_body)
    return resume, notification


def update_resume(db: Session, *, resume_id: int, changes: dict, actor: Actor) -> Resume:
    """Admin correction of descriptive fields; status and history are untouched."""
    _require(actor, ADMIN)
    unknown = set(changes) - set(_UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

    clean: dict[str, Any] = {}
    if "candidate_name" in changes:
        clean["candidate_name"] = validate_string_field(changes["candidate_name"], "Candidate name", max_length=255)
    if "email" in changes:
        clean["email"] = validate_email(changes["email"], "Candidate email")
    if "phone" in changes:
        clean["phone"] = validate_string_field(changes["phone"], "Phone", max_length=50, required=False)
    if "position" in changes:
        clean["position"] = validate_string_field(changes["position"], "Position", max_length=150, required=False)
    if "experience_years" in changes:
        clean["experience_years"] = validate_experience_years(changes["experience_years"])

    resume = get_resume(db, resume_id)
    for field, value in clean.items():
        setattr(resume, field, value)
    resume.updated_at = utcnow()
    _commit(db, "updating candidate")
    db.refresh(resume)
    return resume


def delete_resume(db: Session, *, resume_id: int, actor: Actor, store: LocalFileStore) -> None:
    _require(actor, ADMIN)
    resume = get_resume(db, resume_id)
    handle = resume.file_handle
    db.delete(resume)
    _commit(db, "deleting candidate")
    logger.info("Resume %s deleted by user %s", resume_id, actor.id)

    if handle:
        try:
            store.delete(handle)
        except (OSError, AppError) as e:
            logger.warning("Failed to delete stored file %s for resume %s: %s", handle, resume_id, e)


def resolve_download(db: Session, *, resume_id: int, actor: Actor, store: LocalFileStore) -> DownloadTarget:
    """Admin/HR may download any resume file; staff only files on resumes they created."""
    _require(actor, ADMIN, HR, STAFF)
    resume = get_resume(db, resume_id, actor)
    handle = resume.file_handle
    if not handle:
        raise NotFoundError(get_error_message("file_missing"))

    filename = resume.resume_file_name or Path(handle).name
    media_type = resume.content_type or "application/octet-stream"
    if is_url_handle(handle):
        return DownloadTarget(filename=filename, media_type=media_type, url=handle)
    return DownloadTarget(filename=filename, media_type=media_type, path=store.resolve(handle))
