import pytest
from fastapi.testclient import TestClient

import main
from conftest import ADMIN_PASSWORD
from security import hash_password


def test_admin_page_trailing_slash_requires_login(client):
    response = client.get("/admin.html/", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "/index.html?login=required"


def test_admin_page_trailing_slash_served_when_logged_in(auth_client):
    response = auth_client.get("/admin.html/")
    assert response.status_code == 200
    assert "Admin" in response.text


def test_site_mount_never_serves_admin_page(client):
    for path in ("/./admin.html", "/ADMIN.HTML", "/pdf/../admin.html"):
        response = client.get(path, follow_redirects=False)
        assert response.status_code in (302, 404)
        assert "Admin" not in response.text


def test_dotfiles_are_not_served(client, site_dir):
    (site_dir / ".env").write_text(f"ADMIN_PASSWORD={ADMIN_PASSWORD}\n", encoding="utf-8")
    (site_dir / ".git").mkdir()
    (site_dir / ".git" / "config").write_text("[core]\n", encoding="utf-8")
    (site_dir / "pdf" / ".hidden.pdf").write_bytes(b"%PDF")

    for path in ("/.env", "/.git/config", "/pdf/.hidden.pdf"):
        response = client.get(path)
        assert response.status_code == 404
        assert ADMIN_PASSWORD not in response.text


def test_other_static_files_are_served(client, site_dir):
    (site_dir / "style.css").write_text("body {}", encoding="utf-8")
    response = client.get("/style.css")
    assert response.status_code == 200
    assert response.text == "body {}"
    assert client.get("/index.html").status_code == 200


def test_module_level_app_uses_environment(monkeypatch, site_dir):
    monkeypatch.setenv("SITE_DIR", str(site_dir))
    monkeypatch.setenv("ADMIN_PASSWORD_HASH", hash_password(ADMIN_PASSWORD, iterations=1000))
    for name in ("MATERIALS_FILE", "PDF_DIR"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(main, "_app", None)

    app = main.app
    assert main.app is app
    assert app.state.settings.site_dir == str(site_dir)
    assert TestClient(app).get("/").status_code == 200

    with pytest.raises(AttributeError):
        main.not_a_thing
