from datetime import datetime, timezone
from io import BytesIO
from typing import Iterable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from .. import config
from ..models.resume import DEFAULT_RESUME_STATUS, Resume

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# (header, resume attribute, column width)
COLUMNS = (
    ("Candidate Name", "candidate_name", 25),
    ("Email", "email", 30),
    ("Phone", "phone", 20),
    ("Position", "position", 25),
    ("Experience (years)", "experience_years", 18),
    ("Status", "status", 18),
    ("Employee Feedback", "employee_feedback", 30),
    ("HR Feedback", "hr_feedback", 30),
    ("Latest Feedback", "latest_feedback", 30),
    ("Created At", "created_at", 22),
)


def _export_zone(name: str | None):
    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown EXPORT_TIMEZONE %r; falling back to UTC", name)
        return timezone.utc


def format_timestamp(value: datetime | None, tz_name: str | None = None) -> str:
    if not value:
        return ""
    # SQLite hands back naive datetimes; they were written as UTC.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(_export_zone(tz_name or config.EXPORT_TIMEZONE)).strftime("%Y-%m-%d %H:%M")


def resume_row(resume: Resume, tz_name: str | None = None) -> list:
    row: list = []
    for _, attr, _ in COLUMNS:
        value = getattr(resume, attr, None)
        if attr == "created_at":
            row.append(format_timestamp(value, tz_name))
        elif attr == "status":
            row.append(value or DEFAULT_RESUME_STATUS)
        elif attr == "experience_years":
            row.append("" if value is None else value)
        else:
            row.append(value or "")
    return row


def build_resumes_workbook(resumes: Iterable[Resume], tz_name: str | None = None) -> bytes:
    """Project resumes into a single-sheet xlsx file. Read-only: records are not touched."""
    wb = Workbook()
    sheet = wb.active
    sheet.title = "Resumes"

    sheet.append([header for header, _, _ in COLUMNS])
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for idx, (_, _, width) in enumerate(COLUMNS, start=1):
        sheet.column_dimensions[get_column_letter(idx)].width = width

    for resume in resumes:
        sheet.append(resume_row(resume, tz_name))

    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()
