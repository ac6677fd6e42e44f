import os
import sys
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker


# Ensure `import backend.app...` works regardless of where pytest is run from.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("DISABLE_DOTENV", "1")


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite3"


@pytest.fixture()
def upload_dir(tmp_path: Path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture()
def outbox():
    """Recording mailer: captures messages instead of talking SMTP."""
    from backend.app.services.emailer import Mailer, SMTPSettings
    from backend.app.utils.error_handlers import NotifyError

    class RecordingMailer(Mailer):
        def __init__(self):
            super().__init__(
                SMTPSettings(host="smtp.test", port=587, user="hr", password="secret", mail_from="hr@test.local")
            )
            self.sent: list[dict] = []
            self.fail = False

        def send(self, *, to, subject, text, html_body=None):
            if self.fail:
                raise NotifyError("Failed to send email.")
            self.sent.append({"to": to, "subject": subject, "text": text, "html": html_body})

    return RecordingMailer()


@pytest.fixture()
def app(test_db_path: Path, upload_dir: Path, outbox) -> FastAPI:
    """
    Create a FastAPI app wired to a temporary SQLite DB.

    We intentionally do NOT import `backend.app.main` so startup hooks (init_db, SMTP) never run.
    """
    os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{test_db_path}"
    os.environ["UPLOAD_DIR"] = str(upload_dir)

    from backend.app import database as db

    engine = db.build_engine(os.environ["DATABASE_URL"])
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # Patch the shared database module so router dependencies use the test DB.
    db.engine = engine
    db.SessionLocal = TestingSessionLocal

    # Import models so Base metadata is populated, then create tables.
    from backend.app import models  # noqa: F401

    db.Base.metadata.drop_all(bind=engine)
    db.Base.metadata.create_all(bind=engine)

    from backend.app.api import auth as auth_api
    from backend.app.api import employees as employees_api
    from backend.app.api import export as export_api
    from backend.app.api import leads as leads_api
    from backend.app.api import resume as resume_api
    from backend.app.api import users as users_api
    from backend.app.services.emailer import get_mailer
    from backend.app.services.file_store import LocalFileStore, get_file_store
    from backend.app.utils.error_handlers import register_exception_handlers

    fastapi_app = FastAPI()
    fastapi_app.include_router(auth_api.router)
    fastapi_app.include_router(resume_api.router)
    fastapi_app.include_router(employees_api.router)
    fastapi_app.include_router(users_api.router)
    fastapi_app.include_router(leads_api.router)
    fastapi_app.include_router(export_api.router)
    register_exception_handlers(fastapi_app)

    fastapi_app.dependency_overrides[get_mailer] = lambda: outbox
    fastapi_app.dependency_overrides[get_file_store] = lambda: LocalFileStore(upload_dir)
    return fastapi_app


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def db_session(app: FastAPI):
    """
    Direct SQLAlchemy session bound to the same temporary SQLite DB used by the test app.
    """
    from backend.app.database import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def file_store(upload_dir: Path):
    from backend.app.services.file_store import LocalFileStore

    return LocalFileStore(upload_dir)


@pytest.fixture()
def make_user(db_session):
    """
    Factory: insert an account directly and return (user, actor, headers).

    `role` is the internal name (admin / hr / staff).
    """
    from backend.app.api.auth import issue_token
    from backend.app.models.user import User
    from backend.app.utils.dependencies import Actor

    counter = {"n": 0}

    def _make(role: str = "staff", name: str | None = None):
        counter["n"] += 1
        user = User(
            name=name or f"{role.title()} {counter['n']}",
            email=f"{role}{counter['n']}@example.com",
            # Not a real hash; these users never log in with a password.
            password="x",
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        actor = Actor(id=user.id, role=user.role, name=user.name, email=user.email)
        headers = {"Authorization": f"Bearer {issue_token(user)}"}
        return user, actor, headers

    return _make
