from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from ..database import Base, utcnow

RESUME_STATUSES = ("awaiting_hr", "screening_done", "selected", "rejected")
DEFAULT_RESUME_STATUS = "awaiting_hr"


class Resume(Base):
    __tablename__ = "resumes"

    id = Column(Integer, primary_key=True, index=True)
    candidate_name = Column(String(255), nullable=False)
    # Not unique: a candidate may reapply.
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    position = Column(String(150), nullable=True)
    experience_years = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False, default=DEFAULT_RESUME_STATUS, index=True)

    employee_feedback = Column(Text, nullable=True)
    hr_feedback = Column(Text, nullable=True)
    latest_feedback = Column(Text, nullable=True)
    hr_owner_name = Column(String(255), nullable=True)

    # Blob store reference: relative path under UPLOAD_DIR, or an absolute URL.
    resume_file_name = Column(String(255), nullable=True)
    file_handle = Column(String(500), nullable=True)
    content_type = Column(String(120), nullable=True)
    size_bytes = Column(Integer, nullable=True)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    creator = relationship("User", back_populates="resumes", foreign_keys=[created_by])
    # Audit trail: rows are only ever inserted, ordered by insertion id.
    history = relationship(
        "ResumeHistory",
        back_populates="resume",
        order_by="ResumeHistory.id",
        cascade="all, delete-orphan",
    )
    interview = relationship(
        "ResumeInterview",
        back_populates="resume",
        uselist=False,
        cascade="all, delete-orphan",
    )


class ResumeHistory(Base):
    __tablename__ = "resume_history"

    id = Column(Integer, primary_key=True, index=True)
    resume_id = Column(Integer, ForeignKey("resumes.id", ondelete="CASCADE"), nullable=False, index=True)
    # Free-form label: a resume status, or a marker such as interview_scheduled.
    status = Column(String(40), nullable=False)
    note = Column(Text, nullable=True)
    actor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    resume = relationship("Resume", back_populates="history")


class ResumeInterview(Base):
    __tablename__ = "resume_interviews"

    id = Column(Integer, primary_key=True, index=True)
    resume_id = Column(
        Integer, ForeignKey("resumes.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    date = Column(String(50), nullable=True)
    time = Column(String(50), nullable=True)
    mode = Column(String(32), nullable=True)  # online | offline | phone ...
    link = Column(String(500), nullable=True)
    location = Column(String(255), nullable=True)
    message = Column(Text, nullable=True)
    scheduled_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    scheduled_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    resume = relationship("Resume", back_populates="interview")
