# tests/conftest.py
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from remote_access.server import auth, files
from remote_access.server.access_log import AccessLog, get_access_log
from remote_access.server.database import Base, get_db
from remote_access.server.main import app


class FixedClock:
    """Clock returning a settable local time."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 3, 1, 14, 22, 5))


@pytest.fixture
def access_log(tmp_path, clock):
    """Access log rooted in a temporary application-data directory"""
    return AccessLog(tmp_path / "appdata", clock=clock)


@pytest.fixture
def db_session_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def client(tmp_path, access_log, db_session_factory):
    """Test client with database, access log and file store overridden"""

    def override_get_db():
        db = db_session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_access_log] = lambda: access_log
    app.dependency_overrides[files.get_files_dir] = lambda: tmp_path / "files"
    auth.TOKEN_STORE.clear()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    auth.TOKEN_STORE.clear()


@pytest.fixture
def login_user(client):
    """Register a user and return a helper that logs in and yields auth headers"""

    def _login(login="alice", password="correct-horse-battery"):
        client.post("/auth/register", json={"login": login, "password": password})
        resp = client.post("/auth/login", json={"login": login, "password": password})
        assert resp.status_code == 200
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    return _login
