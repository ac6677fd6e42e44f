from .employee import Employee
from .lead import Lead
from .resume import Resume, ResumeHistory, ResumeInterview
from .user import User

__all__ = ["Employee", "Lead", "Resume", "ResumeHistory", "ResumeInterview", "User"]
