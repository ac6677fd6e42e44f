"""
Engine construction: URL normalisation and SQLite foreign-key enforcement.
"""
from sqlalchemy import text

from backend.app.database import build_engine, database_url


def test_mysql_url_is_routed_through_pymysql():
    assert database_url(" mysql://u:p@db/ats ") == "mysql+pymysql://u:p@db/ats"
    assert database_url("mysql+pymysql://u:p@db/ats") == "mysql+pymysql://u:p@db/ats"
    assert database_url("sqlite:///dev.db") == "sqlite:///dev.db"
    assert database_url(None) == ""


def test_sqlite_engine_enforces_foreign_keys():
    engine = build_engine("sqlite://")
    with engine.connect() as conn:
        assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
