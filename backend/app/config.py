import os
from pathlib import Path
from dotenv import load_dotenv

# Override=True so changes in backend/.env take effect on process reload.
#
# For automated tests (SQLite), set DISABLE_DOTENV=1 so backend/.env cannot override
# the test DATABASE_URL.
if os.getenv("DISABLE_DOTENV") != "1":
    load_dotenv(override=True)


def _env_bool(name: str, default: str = "1") -> bool:
    v = (os.getenv(name, default) or default).strip().lower()
    return v in {"1", "true", "yes", "y", "on"}


_BACKEND_DIR = Path(__file__).resolve().parent.parent

_raw_database_url = (os.getenv("DATABASE_URL") or "").strip()
# Default to a local SQLite DB for dev so the backend can start out-of-the-box.
DATABASE_URL = _raw_database_url or f"sqlite:///{(_BACKEND_DIR / 'dev.db').as_posix()}"

LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()

# Auth / JWT
# NOTE: keep a default for local dev so the server can boot even if SECRET_KEY isn't set.
SECRET_KEY = os.getenv("SECRET_KEY", "dev_secret_change_me")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "10080") or "10080")  # 7 days

# File uploads
# Absolute path; override with UPLOAD_DIR in env (useful for tests).
UPLOAD_DIR = os.getenv("UPLOAD_DIR") or (_BACKEND_DIR / "uploads").as_posix()
MAX_RESUME_BYTES = int(os.getenv("MAX_RESUME_BYTES", str(10 * 1024 * 1024)) or str(10 * 1024 * 1024))

# Outbound mail (Gmail App Password or any SMTP relay)
SMTP_HOST = (os.getenv("SMTP_HOST") or "").strip()
SMTP_PORT = int((os.getenv("SMTP_PORT") or "587").strip())
SMTP_USER = (os.getenv("SMTP_USER") or "").strip()
SMTP_PASS = (os.getenv("SMTP_PASS") or "").strip()
SMTP_FROM = (os.getenv("SMTP_FROM") or os.getenv("MAIL_FROM") or SMTP_USER).strip()
SMTP_TLS = _env_bool("SMTP_TLS", "1")
SMTP_TIMEOUT_S = float(os.getenv("SMTP_TIMEOUT_S", "15") or "15")
COMPANY_NAME = (os.getenv("COMPANY_NAME") or "HR Team").strip()

# Spreadsheet export: timestamps are rendered in this IANA zone.
EXPORT_TIMEZONE = (os.getenv("EXPORT_TIMEZONE") or "UTC").strip()
