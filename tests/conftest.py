import os
import tempfile

# Settings are read at import time, so the environment is prepared before the
# application modules are imported
_TMP_DIR = tempfile.mkdtemp(prefix="coachbook-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR}/test.db"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-access-secret"
os.environ["JWT_REFRESH_SECRET_KEY"] = "test-refresh-secret"
os.environ["COACH_REGISTRATION_TOKEN"] = "coach-secret"
os.environ["ENVIRONMENT"] = "test"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["MAX_VIDEO_SIZE_MB"] = "1"

import itertools

import pytest
from fastapi.testclient import TestClient

from app import app
from core.database import SessionLocal, engine
from models.base import Base

COACH_TOKEN = "coach-secret"
PASSWORD = "secret123"

_counter = itertools.count(1)


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class Account:
    """A registered user as seen by the client."""

    def __init__(self, body: dict):
        self.token = body["token"]
        self.refresh_token = body["refreshToken"]
        self.user = body["user"]
        self.id = body["user"]["id"]
        self.headers = auth_headers(self.token)


def register(client, role="student", name=None, email=None, password=PASSWORD):
    n = next(_counter)
    payload = {
        "name": name or f"{role.title()} {n}",
        "email": email or f"{role}{n}@example.com",
        "password": password,
        "role": role,
    }
    if role == "coach":
        payload["coachToken"] = COACH_TOKEN
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    return Account(response.json())


@pytest.fixture
def make_student(client):
    def factory(**kwargs):
        return register(client, role="student", **kwargs)

    return factory


@pytest.fixture
def make_coach(client):
    def factory(price=None, **kwargs):
        coach = register(client, role="coach", **kwargs)
        if price is not None:
            response = client.put(
                "/api/coach/profile", json={"price": price}, headers=coach.headers
            )
            assert response.status_code == 200, response.text
        return coach

    return factory


@pytest.fixture
def book(client):
    """Book a session as ``student`` and return the response body."""

    def factory(student, coach, session_type="individual", **extra):
        payload = {
            "mentorId": coach.id,
            "type": session_type,
            "date": "2099-06-01",
            "time": "10:00",
        }
        payload.update(extra)
        response = client.post("/api/sessions", json=payload, headers=student.headers)
        assert response.status_code == 201, response.text
        return response.json()

    return factory


@pytest.fixture
def confirmed_group(client, book):
    """A confirmed group session with the given capacity."""

    def factory(student, coach, capacity=2):
        session = book(student, coach, "group", maxParticipants=capacity)
        response = client.post(
            f"/api/sessions/{session['id']}/confirm", headers=coach.headers
        )
        assert response.status_code == 200, response.text
        return response.json()

    return factory
