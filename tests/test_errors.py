import logging

from fastapi.testclient import TestClient

from app import app
from core.exceptions import (
    ConflictError,
    NotFoundError,
    PayloadTooLargeError,
    ValidationError,
)
from core.logging_config import setup_logging


def test_root_and_health(client):
    assert client.get("/").json()["health"] == "/api/health"
    assert client.get("/api/health").json()["status"] == "ok"


def test_unknown_route_uses_envelope(client):
    response = client.get("/api/nowhere")
    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "ROUTE_NOT_FOUND"


def test_request_validation_envelope(client, make_student):
    student = make_student()
    response = client.post(
        "/api/sessions",
        json={"type": "individual", "date": "not-a-date", "time": "25:99"},
        headers=student.headers,
    )
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "VALIDATION_ERROR"
    assert body["message"] == "Validation failed"
    assert {"mentorId", "date", "time"} <= set(body["fields"])


def test_domain_errors_render_their_envelope():
    assert NotFoundError("Session").to_dict() == {
        "success": False,
        "message": "Session not found",
        "code": "NOT_FOUND",
    }
    assert ConflictError("Session is full").status_code == 409
    error = ValidationError(fields={"amount": ["Must be positive"]})
    assert error.to_dict()["fields"] == {"amount": ["Must be positive"]}


def test_unexpected_errors_hide_details():
    @app.get("/api/_boom")
    def boom():
        raise RuntimeError("secret internals")

    try:
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/api/_boom")
    finally:
        app.router.routes = [r for r in app.router.routes if getattr(r, "path", None) != "/api/_boom"]

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "INTERNAL_SERVER_ERROR"
    assert "secret internals" not in body["message"]


def test_payload_too_large_envelope():
    response = PayloadTooLargeError("Video exceeds maximum allowed size of 1MB").to_response()
    assert response.status_code == 413


def test_setup_logging_is_idempotent():
    root = logging.getLogger()
    before = list(root.handlers)
    setup_logging()
    setup_logging()
    assert root.handlers == before
