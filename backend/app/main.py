import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import auth as auth_api
from .api import employees as employees_api
from .api import export as export_api
from .api import leads as leads_api
from .api import resume as resume_api
from .api import users as users_api
from .config import LOG_LEVEL
from .database import init_db, ping_db
from .services.emailer import init_mailer, shutdown_mailer
from .utils.error_handlers import create_error_response, get_error_message, register_exception_handlers

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Job Path Guard API")

app.include_router(auth_api.router)
app.include_router(resume_api.router)
app.include_router(employees_api.router)
app.include_router(users_api.router)
app.include_router(leads_api.router)
app.include_router(export_api.router)

register_exception_handlers(app)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "Backend running",
        "service": "job-path-guard-api",
    }


@app.get("/db/health")
def db_health():
    try:
        ping_db()
    except Exception as e:
        logger.error("Database health check failed: %s", e)
        return create_error_response(503, get_error_message("database_error"))
    return {"success": True, "database": "ok"}


_default_origins = ["http://localhost:5173", "http://127.0.0.1:5173"]
_extra_origins = [
    origin.strip()
    for origin in os.getenv("FRONTEND_ORIGINS", "").split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=[*_default_origins, *_extra_origins],
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    init_db()
    mailer = init_mailer()
    logger.info("Startup complete (email %s)", "enabled" if mailer.enabled else "disabled")


@app.on_event("shutdown")
def on_shutdown() -> None:
    shutdown_mailer()
