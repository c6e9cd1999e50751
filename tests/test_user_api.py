import pytest

from conftest import PASSWORD, bearer, login, signup
from noter.core.config import settings


def test_health(client):
    res = client.get("/api/health", headers={"X-Request-Id": "abc123"})
    assert res.status_code == 200
    assert res.json() == {"ok": True, "db": True}
    assert res.headers["x-request-id"] == "abc123"


def test_error_body_carries_request_id(client):
    res = client.get("/api/user/get", headers={"X-Request-Id": "abc123"})
    assert res.status_code == 401
    assert res.json() == {"message": "Unauthorized", "request_id": "abc123"}


def test_signup_once_then_conflict(client):
    first = signup(client)
    assert first.status_code == 201
    assert first.json()["message"] == "Sign up successful"

    again = signup(client, email="A@B.com")
    assert again.status_code == 409
    assert again.json()["message"] == "User already exists with the entered email address"


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"name": "Ada", "emailAddress": "a@b.com", "password": PASSWORD}, "Missing credentials"),
        ({"name": " ", "emailAddress": "a@b.com", "password": PASSWORD, "confirmPassword": PASSWORD}, "Missing credentials"),
        ({"name": "Ada 42", "emailAddress": "a@b.com", "password": PASSWORD, "confirmPassword": PASSWORD}, "Invalid name"),
        ({"name": "Ada", "emailAddress": "not-an-email", "password": PASSWORD, "confirmPassword": PASSWORD}, "Invalid email address"),
        ({"name": "Ada", "emailAddress": "a@b.com", "password": "weakpass", "confirmPassword": "weakpass"}, "Invalid password"),
        ({"name": "Ada", "emailAddress": "a@b.com", "password": PASSWORD, "confirmPassword": "Bb2@bbbb"}, "Confirm password does not match with password"),
    ],
)
def test_signup_validation(client, payload, message):
    res = client.post("/api/user/new", json=payload)
    assert res.status_code == 422
    assert res.json()["message"] == message


def test_login_unknown_email_is_not_found(client):
    res = login(client, email="nobody@b.com")
    assert res.status_code == 404


def test_login_wrong_password_is_unauthorized(client):
    signup(client)
    res = login(client, password="Bb2@bbbb")
    assert res.status_code == 401
    assert res.json()["message"] == "Email address or password is incorrect."


def test_login_sets_refresh_cookie(client):
    signup(client)
    res = login(client)
    assert res.status_code == 200
    body = res.json()
    assert body["message"] == "Logged in successfully"
    assert body["token"]
    assert body["user"]["name"] == "Ada Lovelace"

    set_cookie = res.headers["set-cookie"].lower()
    assert set_cookie.startswith("token=")
    assert "httponly" in set_cookie
    assert "samesite=lax" in set_cookie
    assert "max-age=604800" in set_cookie
    # backend host is localhost in tests
    assert "; secure" not in set_cookie


def test_refresh_requires_cookie(client):
    res = client.get("/api/user/refresh")
    assert res.status_code == 401


def test_refresh_with_invalid_cookie_is_forbidden_and_clears_it(client):
    res = client.get("/api/user/refresh", headers={"Cookie": "token=garbage"})
    assert res.status_code == 403
    assert "max-age=0" in res.headers["set-cookie"].lower()


def test_refresh_issues_new_access_token(client):
    signup(client)
    login(client)
    res = client.get("/api/user/refresh")
    assert res.status_code == 200
    body = res.json()
    assert body["token"]
    assert body["user"]["name"] == "Ada Lovelace"

    me = client.get("/api/user/get", headers=bearer(body["token"]))
    assert me.status_code == 200


def test_logout(client):
    assert client.post("/api/user/logout").status_code == 401

    signup(client)
    login(client)
    res = client.post("/api/user/logout")
    assert res.status_code == 200
    assert res.json()["message"] == "Logged out successfully"
    assert client.get("/api/user/refresh").status_code == 401


def test_get_user(client, auth):
    headers, user_id = auth
    res = client.get("/api/user/get", params={"id": user_id}, headers=headers)
    assert res.status_code == 200
    assert res.json()["user"] == {"id": user_id, "name": "Ada Lovelace", "emailAddress": "a@b.com"}


def test_authorization_header_is_required(client, auth):
    _, user_id = auth
    assert client.get("/api/user/get").status_code == 401
    assert client.get("/api/user/get", headers=bearer("not-a-jwt")).status_code == 403


def test_cannot_read_someone_else(client, auth):
    headers, _ = auth
    res = client.get("/api/user/get", params={"id": "0123456789abcdef01234567"}, headers=headers)
    assert res.status_code == 403


def test_update_user_ignores_blank_fields(client, auth):
    headers, user_id = auth
    res = client.patch(
        "/api/user/update",
        json={"id": user_id, "name": "Grace Hopper", "emailAddress": "", "password": "", "confirmPassword": ""},
        headers=headers,
    )
    assert res.status_code == 201
    assert res.json()["user"] == {"id": user_id, "name": "Grace Hopper", "emailAddress": "a@b.com"}
    # password unchanged
    assert login(client).status_code == 200


def test_update_user_email_conflict(client, auth):
    headers, user_id = auth
    signup(client, email="c@d.com", name="Other Person")
    res = client.patch("/api/user/update", json={"id": user_id, "emailAddress": "c@d.com"}, headers=headers)
    assert res.status_code == 409


def test_update_user_password(client, auth):
    headers, user_id = auth
    res = client.patch(
        "/api/user/update",
        json={"id": user_id, "password": "Bb2@bbbb", "confirmPassword": "Bb2@bbbb"},
        headers=headers,
    )
    assert res.status_code == 201
    assert login(client).status_code == 401
    assert login(client, password="Bb2@bbbb").status_code == 200


def test_reset_password(client):
    signup(client)
    res = client.patch(
        "/api/user/reset-password",
        json={"emailAddress": "a@b.com", "password": "Bb2@bbbb", "confirmPassword": "Bb2@bbbb"},
    )
    assert res.status_code == 201
    assert res.json()["message"] == "Password reset successful"
    assert login(client, password="Bb2@bbbb").status_code == 200


def test_reset_password_unknown_user(client):
    res = client.patch(
        "/api/user/reset-password",
        json={"emailAddress": "nobody@b.com", "password": PASSWORD, "confirmPassword": PASSWORD},
    )
    assert res.status_code == 404


def test_reset_password_rejects_empty_password(client):
    signup(client)
    res = client.patch(
        "/api/user/reset-password",
        json={"emailAddress": "a@b.com", "password": "", "confirmPassword": ""},
    )
    assert res.status_code == 422
    assert login(client).status_code == 200


def test_delete_user_removes_notes_and_files(client, auth, db, upload_dir):
    headers, user_id = auth
    created = client.post(
        "/api/note/new",
        data={"heading": "H", "content": "C"},
        files=[("images", ("pic.png", b"\x89PNG", "image/png"))],
        headers=headers,
    )
    assert created.status_code == 201
    assert len(list((upload_dir / "images").iterdir())) == 1

    res = client.delete("/api/user/delete", params={"id": user_id}, headers=headers)
    assert res.status_code == 200
    assert db["user"].count_documents({}) == 0
    assert db["note"].count_documents({}) == 0
    assert list((upload_dir / "images").iterdir()) == []


def test_cookie_is_secure_off_localhost(client, monkeypatch):
    monkeypatch.setattr(settings, "backend_host_url", "https://api.noter.example")
    signup(client)
    res = login(client)
    assert res.status_code == 200
    set_cookie = res.headers["set-cookie"].lower()
    assert "; secure" in set_cookie
    assert "samesite=none" in set_cookie
    assert "httponly" in set_cookie
