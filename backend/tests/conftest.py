"""Pytest fixtures: SQLite database for fast, isolated tests."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ["SWEEP_INTERVAL_MINUTES"] = "0"

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from thesis_hub.database import Base, get_db  # noqa: E402
from thesis_hub.main import app  # noqa: E402

# Import all models so they register with Base.metadata
from thesis_hub.models.user import User, UserRole                # noqa: E402
from thesis_hub.models.thesis import Thesis                      # noqa: E402
from thesis_hub.models.access_request import AccessRequest       # noqa: E402,F401
from thesis_hub.models.notification import Notification          # noqa: E402,F401

SQLITE_URL = "sqlite:///./test.db"

# Fixed reference clock for lifecycle tests
T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def utc(dt: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


# ---------------------------------------------------------------------------
# Helpers: seed rows directly through a session
# ---------------------------------------------------------------------------
def make_user(db: Session, name: str = "Student", role: UserRole = UserRole.student) -> User:
    user = User(full_name=name, email=f"{name.lower().replace(' ', '.')}@university.edu", role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_thesis(db: Session, title: str = "Smart IoT Bookshelf Inventory") -> Thesis:
    thesis = Thesis(title=title, author="J. Dela Cruz", college_department="CEIT", batch="2024")
    db.add(thesis)
    db.commit()
    db.refresh(thesis)
    return thesis


# ---------------------------------------------------------------------------
# Helpers: create rows via the API, returning the JSON response dict
# ---------------------------------------------------------------------------
def create_test_user(client: TestClient, name: str = "Test User", role: str = "student") -> dict:
    """Helper: POST /api/users and return response JSON."""
    resp = client.post("/api/users/", json={
        "full_name": name,
        "email": f"{name.lower().replace(' ', '.')}@university.edu",
        "role": role,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_thesis(client: TestClient, title: str = "Test Thesis", author: str = "A. Author") -> dict:
    """Helper: POST /api/theses and return response JSON."""
    resp = client.post("/api/theses/", json={
        "title": title,
        "author": author,
        "college_department": "CEIT",
        "batch": "2024",
    })
    assert resp.status_code == 201, resp.text
    return resp.json()
