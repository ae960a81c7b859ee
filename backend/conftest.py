import os
import sys

import pytest
from fastapi.testclient import TestClient

# Test modules import the backend modules directly (from main import ...)
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from config import Settings
from main import create_app
from security import hash_password

ADMIN_USERNAME = "davian"
ADMIN_PASSWORD = "timeacademy"


@pytest.fixture
def site_dir(tmp_path):
    site = tmp_path / "site"
    site.mkdir()
    (site / "index.html").write_text("<h1>Time Academy</h1>", encoding="utf-8")
    (site / "admin.html").write_text("<h1>Admin</h1>", encoding="utf-8")
    return site


@pytest.fixture
def settings(site_dir):
    return Settings(
        site_dir=str(site_dir),
        materials_file=str(site_dir / "materials.json"),
        pdf_dir=str(site_dir / "pdf"),
        admin_username=ADMIN_USERNAME,
        # Low iteration count keeps the tests fast
        admin_password_hash=hash_password(ADMIN_PASSWORD, iterations=1000),
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_client(client):
    """A client holding an authenticated session cookie."""
    response = client.post("/api/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client
