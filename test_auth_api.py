from datetime import timedelta

from fastapi import status

from scholarship.core.security import create_access_token, create_refresh_token, decode_token
from scholarship.db_users import UserRole, set_user_active

from conftest import PASSWORD, make_user


def test_register_creates_student_and_returns_tokens(client):
    resp = client.post(
        "/api/auth/register",
        json={
            "username": "carol",
            "password": "carol-pass",
            "email": "Carol@Example.com",
            "name": "Carol Li",
            "student_id": "20260003",
            "major": "Mathematics",
        },
    )
    assert resp.status_code == status.HTTP_201_CREATED
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == UserRole.STUDENT
    assert body["user"]["email"] == "carol@example.com"
    assert decode_token(body["access_token"])["user_id"] == body["user"]["id"]


def test_register_rejects_duplicates(client, student):
    same_username = client.post("/api/auth/register", json={"username": "alice", "password": "whatever"})
    assert same_username.status_code == status.HTTP_400_BAD_REQUEST

    same_student_id = client.post(
        "/api/auth/register",
        json={"username": "alice2", "password": "whatever", "student_id": student["student_id"]},
    )
    assert same_student_id.status_code == status.HTTP_400_BAD_REQUEST


def test_register_validates_password_length(client):
    resp = client.post("/api/auth/register", json={"username": "dave", "password": "123"})
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert isinstance(resp.json()["detail"], list)


def test_login_with_username(client, student):
    resp = client.post("/api/auth/login", json={"username": "alice", "password": PASSWORD})
    assert resp.status_code == status.HTTP_200_OK
    body = resp.json()
    assert body["user"]["id"] == student["id"]
    assert body["user"]["last_login"] is not None


def test_login_with_wrong_password(client, student):
    resp = client.post("/api/auth/login", json={"username": "alice", "password": "nope-nope"})
    assert resp.status_code == status.HTTP_401_UNAUTHORIZED


def test_login_unknown_user(client):
    resp = client.post("/api/auth/login", json={"username": "ghost", "password": PASSWORD})
    assert resp.status_code == status.HTTP_401_UNAUTHORIZED


def test_student_login_by_student_id(client, student):
    resp = client.post("/api/student/login", json={"student_id": "20260001", "password": PASSWORD})
    assert resp.status_code == status.HTTP_200_OK
    assert resp.json()["user"]["username"] == "alice"


def test_disabled_account_cannot_log_in(client, student):
    set_user_active(student["id"], False)
    resp = client.post("/api/auth/login", json={"username": "alice", "password": PASSWORD})
    assert resp.status_code == status.HTTP_403_FORBIDDEN


def test_admin_login_only_for_admins(client, admin, student):
    ok = client.post("/api/admin/login", json={"username": "admin", "password": PASSWORD})
    assert ok.status_code == status.HTTP_200_OK
    assert ok.json()["user"]["role"] == UserRole.ADMIN

    refused = client.post("/api/admin/login", json={"username": "alice", "password": PASSWORD})
    assert refused.status_code == status.HTTP_403_FORBIDDEN


def test_me_returns_current_user(client, student, student_headers):
    resp = client.get("/api/auth/me", headers=student_headers)
    assert resp.status_code == status.HTTP_200_OK
    assert resp.json()["student_id"] == "20260001"
    assert "hashed_password" not in resp.json()


def test_disabled_user_token_is_refused(client, student, student_headers):
    set_user_active(student["id"], False)
    assert client.get("/api/auth/me", headers=student_headers).status_code == status.HTTP_403_FORBIDDEN


def test_expired_or_foreign_tokens_are_refused(client, student):
    claims = {"sub": "alice", "user_id": student["id"], "role": UserRole.STUDENT}
    expired = create_access_token(claims, expires_delta=timedelta(seconds=-1))
    refresh = create_refresh_token(claims)

    for token in (expired, refresh, "not-a-jwt"):
        resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == status.HTTP_401_UNAUTHORIZED


def test_refresh_issues_new_access_token(client, student):
    tokens = client.post("/api/auth/login", json={"username": "alice", "password": PASSWORD}).json()

    resp = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == status.HTTP_200_OK
    new_access = resp.json()["access_token"]
    assert client.get("/api/auth/me", headers={"Authorization": f"Bearer {new_access}"}).status_code == 200

    # An access token is not a refresh token
    wrong = client.post("/api/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert wrong.status_code == status.HTTP_401_UNAUTHORIZED


def test_token_of_deleted_user_is_refused(client):
    from conftest import auth_headers
    from scholarship.db_users import delete_user

    user = make_user("erin")
    headers = auth_headers(user)
    delete_user(user["id"])
    assert client.get("/api/auth/me", headers=headers).status_code == status.HTTP_401_UNAUTHORIZED


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == status.HTTP_200_OK
    assert resp.json() == {"status": "ok"}


def test_blank_student_ids_are_stored_as_none(client):
    for username in ("gina", "hank"):
        resp = client.post(
            "/api/auth/register",
            json={"username": username, "password": "secret-pass", "student_id": "  "},
        )
        assert resp.status_code == status.HTTP_201_CREATED
        assert resp.json()["user"]["student_id"] is None


def test_register_race_on_student_id_answers_400(client, student, monkeypatch):
    # Duplicate slips past the lookup, as with a concurrent registration
    monkeypatch.setattr("scholarship.routers.auth.get_user_by_student_id", lambda student_id: None)

    resp = client.post(
        "/api/auth/register",
        json={"username": "ivan", "password": "secret-pass", "student_id": student["student_id"]},
    )
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
