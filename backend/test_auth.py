from dataclasses import replace
from datetime import timedelta

from fastapi.testclient import TestClient

from config import SESSION_COOKIE_NAME
from conftest import ADMIN_PASSWORD, ADMIN_USERNAME
from main import create_app


def test_login_success(client):
    assert client.get("/api/auth/check").json() == {"authenticated": False}

    response = client.post("/api/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Login berhasil"}
    assert SESSION_COOKIE_NAME in response.cookies

    assert client.get("/api/auth/check").json() == {"authenticated": True, "username": ADMIN_USERNAME}


def test_login_trims_username(client):
    response = client.post("/api/login", json={"username": "  davian ", "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    assert client.get("/api/auth/check").json()["username"] == "davian"


def test_login_rejects_bad_credentials(client):
    for body in (
        {"username": "someone", "password": ADMIN_PASSWORD},
        {"username": ADMIN_USERNAME, "password": "wrong"},
    ):
        response = client.post("/api/login", json=body)
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Username atau password salah"}

    assert client.get("/api/auth/check").json() == {"authenticated": False}


def test_login_requires_both_fields(client):
    for body in ({"username": "   ", "password": "x"}, {"username": ADMIN_USERNAME, "password": ""}, {}):
        response = client.post("/api/login", json=body)
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Username dan password harus diisi"}

    assert client.post("/api/login").status_code == 400
    assert client.get("/api/auth/check").json() == {"authenticated": False}


def test_logout_ends_session(auth_client):
    response = auth_client.post("/api/logout")
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Logout berhasil"}

    assert auth_client.get("/api/auth/check").json() == {"authenticated": False}
    assert auth_client.post("/api/materials", json={"title": "A"}).status_code == 401


def test_logout_without_session(client):
    assert client.post("/api/logout").json()["success"] is True


def test_expired_session_is_anonymous(auth_client, app):
    sessions = app.state.sessions
    session_id = auth_client.cookies.get(SESSION_COOKIE_NAME)
    record = sessions.get(session_id)
    record.created_at -= timedelta(hours=24)

    assert auth_client.get("/api/auth/check").json() == {"authenticated": False}
    assert sessions.get(session_id) is None


def test_admin_page_requires_login(client):
    response = client.get("/admin.html", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "/index.html?login=required"


def test_admin_page_served_when_logged_in(auth_client):
    response = auth_client.get("/admin.html")
    assert response.status_code == 200
    assert "Admin" in response.text


def test_index_page(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "Time Academy" in response.text


def _session_cookie_header(response):
    header = response.headers["set-cookie"]
    assert header.startswith(f"{SESSION_COOKIE_NAME}=")
    return [part.strip().lower() for part in header.split(";")]


def test_session_cookie_attributes(client):
    response = client.post("/api/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    attributes = _session_cookie_header(response)

    assert "httponly" in attributes
    assert "samesite=lax" in attributes
    assert "max-age=86400" in attributes
    assert "path=/" in attributes
    assert "secure" not in attributes


def test_session_cookie_is_secure_in_production(settings):
    production = replace(settings, environment="production")
    assert production.secure_cookies
    client = TestClient(create_app(production))

    response = client.post("/api/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    attributes = _session_cookie_header(response)
    assert "secure" in attributes
    assert "httponly" in attributes


def test_logout_failure_is_reported(auth_client, app, monkeypatch):
    def broken_destroy(session_id):
        raise RuntimeError("session store unavailable")

    monkeypatch.setattr(app.state.sessions, "destroy", broken_destroy)

    response = auth_client.post("/api/logout")
    assert response.status_code == 500
    assert response.json() == {"error": "Gagal logout"}
