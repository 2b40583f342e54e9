from datetime import timedelta

import pytest

from conftest import PASSWORD, auth_headers, register
from core.exceptions import ConflictError
from core.security import create_access_token, create_refresh_token
from models.user import UserModel
from schemas.enums import UserRole
from schemas.user import User
from utils.user_manager import UserManager


def test_register_returns_tokens_and_public_user(client):
    response = client.post(
        "/api/auth/register",
        json={"name": "Ana", "email": "Ana@Example.com", "password": PASSWORD},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["token"] and body["refreshToken"]
    assert body["user"]["email"] == "ana@example.com"
    assert body["user"]["role"] == "student"
    assert "passwordHash" not in body["user"]
    assert "password_hash" not in body["user"]


def test_register_duplicate_email_is_conflict(client, db):
    register(client, email="dup@example.com")
    response = client.post(
        "/api/auth/register",
        json={"name": "Again", "email": "DUP@example.com", "password": PASSWORD},
    )
    assert response.status_code == 409
    body = response.json()
    assert body == {
        "success": False,
        "message": "User with this email already exists",
        "code": "CONFLICT",
    }
    assert db.query(UserModel).filter(UserModel.email == "dup@example.com").count() == 1
    assert db.query(UserModel).count() == 1


def test_register_rejects_short_password(client):
    response = client.post(
        "/api/auth/register",
        json={"name": "Bo", "email": "bo@example.com", "password": "123"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert "password" in body["fields"]


def test_coach_registration_requires_token(client):
    response = client.post(
        "/api/auth/register",
        json={
            "name": "Coach",
            "email": "coach@example.com",
            "password": PASSWORD,
            "role": "coach",
            "coachToken": "wrong",
        },
    )
    assert response.status_code == 403
    assert response.json()["code"] == "AUTHORIZATION_ERROR"

    coach = register(client, role="coach")
    assert coach.user["role"] == "coach"


def test_login_success_and_generic_failure(client):
    register(client, email="li@example.com")

    ok = client.post("/api/auth/login", json={"email": "LI@example.com", "password": PASSWORD})
    assert ok.status_code == 200
    assert ok.json()["user"]["email"] == "li@example.com"

    wrong_password = client.post(
        "/api/auth/login", json={"email": "li@example.com", "password": "nope-nope"}
    )
    unknown_user = client.post(
        "/api/auth/login", json={"email": "ghost@example.com", "password": PASSWORD}
    )
    for response in (wrong_password, unknown_user):
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"


def test_login_keeps_earlier_refresh_tokens_valid(client):
    account = register(client, email="multi@example.com")
    client.post("/api/auth/login", json={"email": "multi@example.com", "password": PASSWORD})

    response = client.post("/api/auth/refresh", json={"refreshToken": account.refresh_token})
    assert response.status_code == 200


def test_refresh_rotates_and_is_single_use(client):
    account = register(client)

    first = client.post("/api/auth/refresh", json={"refreshToken": account.refresh_token})
    assert first.status_code == 200
    body = first.json()
    assert body["refreshToken"] != account.refresh_token

    replay = client.post("/api/auth/refresh", json={"refreshToken": account.refresh_token})
    assert replay.status_code == 401
    assert replay.json()["message"] == "Invalid or expired refresh token"

    second = client.post("/api/auth/refresh", json={"refreshToken": body["refreshToken"]})
    assert second.status_code == 200


def test_access_and_refresh_tokens_are_not_interchangeable(client):
    account = register(client)

    as_refresh = client.post("/api/auth/refresh", json={"refreshToken": account.token})
    assert as_refresh.status_code == 401

    as_access = client.get("/api/auth/me", headers=auth_headers(account.refresh_token))
    assert as_access.status_code == 401


def test_expired_refresh_token_is_rejected(client):
    user = User(email="old@example.com", name="Old", role=UserRole.STUDENT)
    token, _ = create_refresh_token(user, expires_delta=timedelta(seconds=-1))
    response = client.post("/api/auth/refresh", json={"refreshToken": token})
    assert response.status_code == 401


def test_logout_invalidates_refresh_token(client):
    account = register(client)

    response = client.post(
        "/api/auth/logout",
        json={"refreshToken": account.refresh_token},
        headers=account.headers,
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Logged out successfully"}

    refresh = client.post("/api/auth/refresh", json={"refreshToken": account.refresh_token})
    assert refresh.status_code == 401


def test_logout_with_unknown_token_still_succeeds(client):
    account = register(client)
    response = client.post(
        "/api/auth/logout", json={"refreshToken": "not-a-token"}, headers=account.headers
    )
    assert response.status_code == 200


def test_logout_all_devices(client):
    account = register(client, email="devices@example.com")
    other = client.post(
        "/api/auth/login", json={"email": "devices@example.com", "password": PASSWORD}
    ).json()

    response = client.post(
        "/api/auth/logout", json={"allDevices": True}, headers=account.headers
    )
    assert response.status_code == 200

    for token in (account.refresh_token, other["refreshToken"]):
        refresh = client.post("/api/auth/refresh", json={"refreshToken": token})
        assert refresh.status_code == 401


def test_logout_requires_access_token(client):
    response = client.post("/api/auth/logout", json={})
    assert response.status_code == 401
    assert response.json()["code"] == "AUTHENTICATION_ERROR"


def test_me(client):
    account = register(client, name="Mia")
    response = client.get("/api/auth/me", headers=account.headers)
    assert response.status_code == 200
    assert response.json()["user"]["name"] == "Mia"


def test_me_rejects_bad_and_orphaned_tokens(client):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers=auth_headers("garbage")).status_code == 401

    ghost = User(email="ghost@example.com", name="Ghost")
    response = client.get("/api/auth/me", headers=auth_headers(create_access_token(ghost)))
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"


def test_expired_access_token_is_rejected(client):
    account = register(client)
    user = User(user_id=account.id, email=account.user["email"], name="x")
    token = create_access_token(user, expires_delta=timedelta(seconds=-1))
    assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401


def test_social_login_creates_student_then_reuses_account(client):
    payload = {
        "provider": "google",
        "token": "provider-token",
        "userInfo": {"id": "g-123", "email": "Social@example.com", "picture": "https://img/x.png"},
    }
    first = client.post("/api/auth/social", json=payload)
    assert first.status_code == 200
    user = first.json()["user"]
    assert user["role"] == "student"
    assert user["name"] == "User"
    assert user["email"] == "social@example.com"

    second = client.post("/api/auth/social", json=payload)
    assert second.json()["user"]["id"] == user["id"]


def test_social_login_links_existing_password_account(client):
    account = register(client, email="both@example.com")
    response = client.post(
        "/api/auth/social",
        json={
            "provider": "apple",
            "token": "t",
            "userInfo": {"id": "a-1", "email": "both@example.com"},
        },
    )
    assert response.status_code == 200
    assert response.json()["user"]["id"] == account.id

    # Password login still works after linking
    login = client.post("/api/auth/login", json={"email": "both@example.com", "password": PASSWORD})
    assert login.status_code == 200


def test_social_only_account_cannot_password_login(client):
    client.post(
        "/api/auth/social",
        json={"provider": "facebook", "token": "t", "userInfo": {"email": "fb@example.com"}},
    )
    response = client.post("/api/auth/login", json={"email": "fb@example.com", "password": PASSWORD})
    assert response.status_code == 401


def test_social_login_validation(client):
    bad_provider = client.post(
        "/api/auth/social",
        json={"provider": "myspace", "token": "t", "userInfo": {"email": "x@example.com"}},
    )
    assert bad_provider.status_code == 400
    assert bad_provider.json()["fields"] == {"provider": ["Invalid provider"]}

    no_email = client.post(
        "/api/auth/social", json={"provider": "google", "token": "t", "userInfo": {"id": "1"}}
    )
    assert no_email.status_code == 401
    assert no_email.json()["message"] == "Email is required for social login"


def test_logout_leaves_other_users_tokens_alone(client):
    alice = register(client)
    bob = register(client)

    response = client.post(
        "/api/auth/logout", json={"refreshToken": bob.refresh_token}, headers=alice.headers
    )
    assert response.status_code == 200
    assert response.json()["success"] is True

    refresh = client.post("/api/auth/refresh", json={"refreshToken": bob.refresh_token})
    assert refresh.status_code == 200

    # Alice's own token was not touched either
    own = client.post("/api/auth/refresh", json={"refreshToken": alice.refresh_token})
    assert own.status_code == 200


def test_social_login_matches_provider_id_before_email(client):
    linked = client.post(
        "/api/auth/social",
        json={"provider": "google", "token": "t", "userInfo": {"id": "g-1", "email": "a@example.com"}},
    ).json()["user"]
    other = register(client, email="b@example.com")

    # The provider account now reports a different email that another user owns
    response = client.post(
        "/api/auth/social",
        json={"provider": "google", "token": "t", "userInfo": {"id": "g-1", "email": "b@example.com"}},
    )
    assert response.status_code == 200
    assert response.json()["user"]["id"] == linked["id"]
    assert response.json()["user"]["id"] != other.id


def test_social_login_rejects_email_linked_to_another_provider_account(client):
    client.post(
        "/api/auth/social",
        json={"provider": "google", "token": "t", "userInfo": {"id": "g-1", "email": "a@example.com"}},
    )
    response = client.post(
        "/api/auth/social",
        json={"provider": "google", "token": "t", "userInfo": {"id": "g-2", "email": "a@example.com"}},
    )
    assert response.status_code == 409
    assert response.json() == {
        "success": False,
        "message": "This email is linked to a different google account",
        "code": "CONFLICT",
    }


def test_linking_a_provider_id_held_by_another_user_is_conflict(db):
    users = UserManager(db)
    holder = users.create_user(
        email="holder@example.com", name="Holder", external_ids={"apple": "a-1"}
    )
    other = users.create_user(email="other@example.com", name="Other", password=PASSWORD)

    with pytest.raises(ConflictError) as exc_info:
        users.link_external_id(other.user_id, "apple", "a-1")
    assert exc_info.value.message == "This apple account is linked to another user"

    assert users.get_user_by_id(other.user_id).apple_id is None
    assert users.get_user_by_id(holder.user_id).apple_id == "a-1"
