from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..models.resume import Resume
from ..services.export import XLSX_MEDIA_TYPE, build_resumes_workbook
from ..utils.dependencies import Actor
from ..utils.roles import any_role, hr_or_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/export", tags=["Export"])


def _xlsx_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _all_resumes(db: Session, actor: Actor) -> Response:
    rows = db.query(Resume).order_by(Resume.created_at.desc(), Resume.id.desc()).all()
    logger.info("User %s exported %d resumes", actor.id, len(rows))
    return _xlsx_response(build_resumes_workbook(rows), "resumes_all.xlsx")


@router.get("")
def export_all(db: Session = Depends(get_db), actor: Actor = Depends(hr_or_admin)):
    return _all_resumes(db, actor)


@router.get("/resumes.xlsx")
def export_all_xlsx(db: Session = Depends(get_db), actor: Actor = Depends(hr_or_admin)):
    return _all_resumes(db, actor)


@router.get("/mine")
def export_mine(db: Session = Depends(get_db), actor: Actor = Depends(any_role)):
    rows = (
        db.query(Resume)
        .filter(Resume.created_by == actor.id)
        .order_by(Resume.created_at.desc(), Resume.id.desc())
        .all()
    )
    return _xlsx_response(build_resumes_workbook(rows), "resumes_mine.xlsx")
