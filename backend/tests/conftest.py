import os
import tempfile

# Settings are read at import time; configure before importing the app.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_INIT_MODE", "off")
os.environ.setdefault("RUN_SESSION_SWEEPER", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "mobile_api_tests", "app.log"))

import pytest
from fastapi.testclient import TestClient

from mobile_api.api.deps import get_storage
from mobile_api.core.database import Base, SessionLocal, engine
from mobile_api.main import app
from mobile_api.models.security import AuthSession
from mobile_api.services.rate_limiter import rate_limiter
from mobile_api.services.storage_service import InMemoryStorageClient


@pytest.fixture(autouse=True)
def _fresh_state():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    rate_limiter.reset()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage():
    client = InMemoryStorageClient()
    app.dependency_overrides[get_storage] = lambda: client
    return client


@pytest.fixture
def client(storage):
    return TestClient(app)


@pytest.fixture
def signup(client):
    def _signup(email="alice@example.com", password="password123", name=None):
        response = client.post(
            "/api/auth/signup",
            json={"email": email, "password": password, "name": name},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _signup


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def count_sessions(user_id=None) -> int:
    session = SessionLocal()
    try:
        query = session.query(AuthSession)
        if user_id is not None:
            query = query.filter(AuthSession.user_id == user_id)
        return query.count()
    finally:
        session.close()
