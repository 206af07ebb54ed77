"""
Tests HTTP pour les routes administrateurs (/api/admins/...).
"""

from datetime import datetime
from unittest.mock import patch

from conftest import make_admin

from app.dependencies import get_current_admin
from app.errors import DuplicateEmailError
from app.main import app
from app.models.admin import Admin
from app.schemas.auth import AdminLoginResponse, AdminResponse

NEW_ADMIN = {
    "first_name": "Awa",
    "last_name": "Ba",
    "email": "awa.ba@bucohub.com",
    "password": "motdepasse1",
    "role": "moderator",
}


def created_admin():
    return Admin(
        id=2, first_name="Awa", last_name="Ba", email="awa.ba@bucohub.com",
        password_hash="hashed", role="moderator", is_active=True,
        last_login=None, created_at=datetime(2026, 1, 15),
    )


def test_login_success(client):
    result = AdminLoginResponse(
        access_token="jeton",
        expires_in=3600,
        admin=AdminResponse.model_validate(created_admin()),
    )
    with patch("app.services.auth_service.login_admin", return_value=result):
        response = client.post("/api/admins/login", json={"email": "awa.ba@bucohub.com", "password": "motdepasse1"})

    assert response.status_code == 200
    body = response.json()
    assert body["access_token"] == "jeton"
    assert body["token_type"] == "bearer"
    assert body["admin"]["role"] == "moderator"
    assert "password_hash" not in body["admin"]


def test_login_invalid_credentials(client):
    with patch("app.services.auth_service.login_admin", return_value=None):
        response = client.post("/api/admins/login", json={"email": "admin@bucohub.com", "password": "x"})
    assert response.status_code == 401


def test_login_invalid_email_format(client):
    response = client.post("/api/admins/login", json={"email": "admin", "password": "x"})
    assert response.status_code == 400


def test_register_by_super_admin(admin_client):
    with patch("app.services.auth_service.register_admin", return_value=created_admin()) as register:
        response = admin_client.post("/api/admins/register", json=NEW_ADMIN)

    assert response.status_code == 201
    assert response.json()["email"] == "awa.ba@bucohub.com"
    assert register.call_args.args[1].role == "moderator"


def test_register_forbidden_for_other_roles(client):
    app.dependency_overrides[get_current_admin] = lambda: make_admin(role="admin")
    with patch("app.services.auth_service.register_admin") as register:
        response = client.post("/api/admins/register", json=NEW_ADMIN)

    assert response.status_code == 403
    register.assert_not_called()


def test_register_requires_token(client):
    response = client.post("/api/admins/register", json=NEW_ADMIN)
    assert response.status_code == 401


def test_register_duplicate_email(admin_client):
    with patch("app.services.auth_service.register_admin",
               side_effect=DuplicateEmailError("Cet email est déjà enregistré.")):
        response = admin_client.post("/api/admins/register", json=NEW_ADMIN)
    assert response.status_code == 409


def test_register_invalid_role(admin_client):
    response = admin_client.post("/api/admins/register", json={**NEW_ADMIN, "role": "root"})
    assert response.status_code == 400


def test_register_short_password(admin_client):
    response = admin_client.post("/api/admins/register", json={**NEW_ADMIN, "password": "court"})
    assert response.status_code == 400


def test_me(admin_client):
    response = admin_client.get("/api/admins/me")
    assert response.status_code == 200
    assert response.json()["role"] == "super_admin"
