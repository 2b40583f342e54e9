import threading
from datetime import date

import pytest

from core.database import SessionLocal
from core.exceptions import ConflictError, NotFoundError
from schemas.enums import SessionType, UserRole
from utils.session_manager import SessionManager
from utils.user_manager import UserManager


def test_create_individual_session(client, make_student, make_coach, book):
    student = make_student()
    coach = make_coach(price=80)

    session = book(student, coach, location="Field 2", notes="Bring cones")

    assert session["success"] is True
    assert session["status"] == "pending"
    assert session["type"] == "individual"
    assert session["price"] == 80
    assert session["duration"] == 60
    assert session["maxParticipants"] is None
    assert session["mentorId"] == coach.id
    assert session["mentorName"] == coach.user["name"]
    assert session["studentId"] == student.id


def test_price_defaults_and_is_a_snapshot(client, make_student, make_coach, book):
    student = make_student()
    coach = make_coach()

    session = book(student, coach)
    assert session["price"] == 50

    client.put("/api/coach/profile", json={"price": 120}, headers=coach.headers)

    reread = client.get(f"/api/sessions/{session['id']}", headers=student.headers).json()
    assert reread["price"] == 50
    assert book(student, coach)["price"] == 120


def test_create_requires_existing_coach(client, make_student):
    student = make_student()
    other = make_student()
    for mentor_id in ("missing", other.id):
        response = client.post(
            "/api/sessions",
            json={"mentorId": mentor_id, "type": "individual", "date": "2099-01-01", "time": "09:00"},
            headers=student.headers,
        )
        assert response.status_code == 404
        assert response.json()["message"] == "Mentor not found"


def test_only_students_create_sessions(client, make_coach):
    coach = make_coach()
    response = client.post(
        "/api/sessions",
        json={"mentorId": coach.id, "type": "individual", "date": "2099-01-01", "time": "09:00"},
        headers=coach.headers,
    )
    assert response.status_code == 403


def test_group_session_needs_capacity(client, make_student, make_coach):
    student = make_student()
    coach = make_coach()
    response = client.post(
        "/api/sessions",
        json={"mentorId": coach.id, "type": "group", "date": "2099-01-01", "time": "09:00"},
        headers=student.headers,
    )
    assert response.status_code == 400
    assert "maxParticipants" in response.json()["fields"]


def test_group_session_starts_empty(make_student, make_coach, book):
    session = book(make_student(), make_coach(), "group", maxParticipants=4)
    assert session["maxParticipants"] == 4
    assert session["currentParticipants"] == 0


def test_confirm_and_complete(client, make_student, make_coach, book):
    student = make_student()
    coach = make_coach()
    session = book(student, coach)
    url = f"/api/sessions/{session['id']}"

    # Completing a pending session is not allowed
    assert client.post(f"{url}/complete", headers=coach.headers).status_code == 409

    confirmed = client.post(f"{url}/confirm", headers=coach.headers)
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "confirmed"

    again = client.post(f"{url}/confirm", headers=coach.headers)
    assert again.status_code == 409

    completed = client.post(f"{url}/complete", headers=coach.headers)
    assert completed.json()["status"] == "completed"


def test_only_the_sessions_coach_can_confirm(client, make_student, make_coach, book):
    student = make_student()
    session = book(student, make_coach())
    other_coach = make_coach()

    url = f"/api/sessions/{session['id']}/confirm"
    assert client.post(url, headers=other_coach.headers).status_code == 403
    assert client.post(url, headers=student.headers).status_code == 403
    assert client.post("/api/sessions/missing/confirm", headers=other_coach.headers).status_code == 404


def test_join_group_session(client, make_student, make_coach, confirmed_group):
    coach = make_coach()
    session = confirmed_group(make_student(), coach, capacity=3)
    joiner = make_student()

    response = client.post(f"/api/sessions/{session['id']}/join", headers=joiner.headers)
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Successfully joined session"
    assert body["currentParticipants"] == 1

    participants = client.get(
        f"/api/sessions/{session['id']}/participants", headers=coach.headers
    ).json()["participants"]
    assert [p["studentId"] for p in participants] == [joiner.id]

    listed = client.get("/api/sessions", headers=joiner.headers).json()["sessions"]
    assert [s["id"] for s in listed] == [session["id"]]


def test_join_rejections(client, make_student, make_coach, book, confirmed_group):
    coach = make_coach()
    student = make_student()
    joiner = make_student()

    individual = book(student, coach)
    response = client.post(f"/api/sessions/{individual['id']}/join", headers=joiner.headers)
    assert response.status_code == 409
    assert response.json()["message"] == "Only group sessions can be joined"

    pending_group = book(student, coach, "group", maxParticipants=2)
    response = client.post(f"/api/sessions/{pending_group['id']}/join", headers=joiner.headers)
    assert response.status_code == 409
    assert response.json()["message"] == "Session is not available for joining"

    group = confirmed_group(student, coach, capacity=2)
    url = f"/api/sessions/{group['id']}/join"
    assert client.post(url, headers=joiner.headers).status_code == 200
    repeat = client.post(url, headers=joiner.headers)
    assert repeat.status_code == 409
    assert repeat.json()["message"] == "You have already joined this session"

    assert client.post(url, headers=make_student().headers).status_code == 200
    full = client.post(url, headers=make_student().headers)
    assert full.status_code == 409
    assert full.json()["message"] == "Session is full"

    assert client.post("/api/sessions/missing/join", headers=joiner.headers).status_code == 404
    assert client.post(url, headers=coach.headers).status_code == 403


def test_individual_sessions_cannot_be_joined_in_any_status(client, make_student, make_coach, book):
    coach = make_coach()
    student = make_student()
    joiner = make_student()

    confirmed = book(student, coach)
    client.post(f"/api/sessions/{confirmed['id']}/confirm", headers=coach.headers)
    cancelled = book(student, coach)
    client.post(f"/api/sessions/{cancelled['id']}/cancel", headers=student.headers)

    for session in (confirmed, cancelled):
        response = client.post(f"/api/sessions/{session['id']}/join", headers=joiner.headers)
        assert response.status_code == 409
        assert response.json()["message"] == "Only group sessions can be joined"

    participants = client.get(
        f"/api/sessions/{confirmed['id']}/participants", headers=coach.headers
    ).json()["participants"]
    assert participants == []


def test_capacity_is_never_exceeded_under_concurrent_joins(make_student, make_coach, confirmed_group):
    capacity = 3
    session = confirmed_group(make_student(), make_coach(), capacity=capacity)

    db = SessionLocal()
    try:
        users = UserManager(db)
        students = [
            users.create_user(email=f"racer{i}@example.com", name=f"Racer {i}", password="secret123")
            for i in range(8)
        ]
    finally:
        db.close()

    barrier = threading.Barrier(len(students))
    results = []
    lock = threading.Lock()

    def join(student):
        db = SessionLocal()
        try:
            manager = SessionManager(db)
            barrier.wait()
            try:
                manager.join_session(session["id"], student)
                outcome = "joined"
            except ConflictError as e:
                outcome = e.message
        finally:
            db.close()
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=join, args=(s,)) for s in students]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count("joined") == capacity
    assert set(results) == {"joined", "Session is full"}

    db = SessionLocal()
    try:
        final = SessionManager(db).get_session(session["id"])
    finally:
        db.close()
    assert final.current_participants == capacity


def test_cancel_rules(client, make_student, make_coach, book):
    coach = make_coach()
    student = make_student()
    stranger = make_student()

    session = book(student, coach)
    url = f"/api/sessions/{session['id']}/cancel"

    denied = client.post(url, headers=stranger.headers)
    assert denied.status_code == 409
    assert denied.json()["message"] == "You do not have permission to cancel this session"

    cancelled = client.post(url, headers=student.headers)
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"

    assert client.post(url, headers=coach.headers).status_code == 409


def test_coach_can_cancel_confirmed_but_not_completed(client, make_student, make_coach, book):
    coach = make_coach()
    student = make_student()

    confirmed = book(student, coach)
    client.post(f"/api/sessions/{confirmed['id']}/confirm", headers=coach.headers)
    response = client.post(f"/api/sessions/{confirmed['id']}/cancel", headers=coach.headers)
    assert response.json()["status"] == "cancelled"

    done = book(student, coach)
    client.post(f"/api/sessions/{done['id']}/confirm", headers=coach.headers)
    client.post(f"/api/sessions/{done['id']}/complete", headers=coach.headers)
    response = client.post(f"/api/sessions/{done['id']}/cancel", headers=student.headers)
    assert response.status_code == 409
    assert response.json()["message"] == "Session is already completed"


def test_list_sessions_per_role_with_filters(client, make_student, make_coach, book):
    coach = make_coach()
    other_coach = make_coach()
    student = make_student()

    later = book(student, coach, date="2099-07-01")
    earlier = book(student, coach, "group", maxParticipants=3, date="2099-05-01")
    book(make_student(), other_coach)

    coach_view = client.get("/api/sessions", headers=coach.headers).json()["sessions"]
    assert [s["id"] for s in coach_view] == [earlier["id"], later["id"]]

    groups = client.get("/api/sessions?type=group", headers=student.headers).json()["sessions"]
    assert [s["id"] for s in groups] == [earlier["id"]]

    confirmed = client.get("/api/sessions?status=confirmed", headers=student.headers).json()
    assert confirmed["sessions"] == []


def test_open_group_sessions(client, make_student, make_coach, book, confirmed_group):
    coach = make_coach()
    student = make_student()

    book(student, coach, "group", maxParticipants=2)
    open_group = confirmed_group(student, coach, capacity=2)

    listed = client.get("/api/sessions/groups", headers=make_student().headers).json()["sessions"]
    assert [s["id"] for s in listed] == [open_group["id"]]


def test_get_session_and_participants_access(client, make_student, make_coach, book):
    coach = make_coach()
    student = make_student()
    stranger = make_student()
    session = book(student, coach)

    assert client.get(f"/api/sessions/{session['id']}", headers=stranger.headers).status_code == 200
    assert client.get("/api/sessions/missing", headers=stranger.headers).status_code == 404

    url = f"/api/sessions/{session['id']}/participants"
    assert client.get(url, headers=student.headers).status_code == 200
    assert client.get(url, headers=stranger.headers).status_code == 403


@pytest.mark.parametrize("path", ["/api/sessions", "/api/sessions/groups"])
def test_session_routes_require_authentication(client, path):
    assert client.get(path).status_code == 401


def test_manager_rejects_non_coach_mentor(db):
    users = UserManager(db)
    student = users.create_user(email="a@example.com", name="A", password="secret123")
    not_a_coach = users.create_user(email="b@example.com", name="B", role=UserRole.STUDENT)
    with pytest.raises(NotFoundError) as exc_info:
        SessionManager(db).create_session(
            student,
            not_a_coach.user_id,
            session_type=SessionType.INDIVIDUAL,
            session_date=date(2099, 1, 1),
            session_time="10:00",
        )
    assert exc_info.value.message == "Mentor not found"
