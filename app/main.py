"""Repo-root Uvicorn entrypoint.

    uvicorn app.main:app --reload

Re-exports the FastAPI app assembled in `backend/app/main.py`.
"""

from backend.app.main import app  # noqa: F401
