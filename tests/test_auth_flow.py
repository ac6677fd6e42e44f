import pytest

from backend.app.utils.error_handlers import ValidationError
from backend.app.utils.roles import (
    EXTERNAL_ROLES,
    INTERNAL_ROLES,
    to_external_role,
    to_internal_role,
)


def _signup(client, *, email: str, password: str = "Testpass123!", role: str | None = "employee", name: str = "Test User"):
    body = {"email": email, "password": password, "name": name}
    if role is not None:
        body["role"] = role
    return client.post("/auth/signup", json=body)


def _login(client, *, email: str, password: str = "Testpass123!"):
    return client.post("/auth/login", json={"email": email, "password": password})


def _auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def test_role_mapping_is_a_bijection():
    assert sorted(to_external_role(r) for r in INTERNAL_ROLES) == sorted(EXTERNAL_ROLES)
    for role in INTERNAL_ROLES:
        assert to_internal_role(to_external_role(role)) == role
    for role in EXTERNAL_ROLES:
        assert to_external_role(to_internal_role(role)) == role
    assert to_external_role("staff") == "employee"
    with pytest.raises(ValidationError):
        to_internal_role("staff")
    with pytest.raises(ValidationError):
        to_external_role("employee")


def test_signup_defaults_to_employee_and_stores_staff(client, db_session):
    r = _signup(client, email="emp@example.com", role=None)
    assert r.status_code == 201, r.text
    data = r.json()
    assert data["user"]["role"] == "employee"
    assert isinstance(data.get("access_token"), str) and len(data["access_token"]) > 10

    from backend.app.models.user import User

    user = db_session.query(User).filter(User.email == "emp@example.com").one()
    assert user.role == "staff"
    assert user.password != "Testpass123!"


def test_signup_rejects_admin_duplicates_and_bad_input(client):
    assert _signup(client, email="boss@example.com", role="admin").status_code == 400
    assert _signup(client, email="x@example.com", role="wizard").status_code == 400
    assert _signup(client, email="not-an-email").status_code == 400
    assert _signup(client, email="weak@example.com", password="123").status_code == 400

    assert _signup(client, email="dup@example.com").status_code == 201
    r = _signup(client, email="DUP@example.com")
    assert r.status_code == 409, r.text


def test_login_success_and_failure(client):
    _signup(client, email="hr@example.com", role="hr", name="HR")

    r = _login(client, email="hr@example.com")
    assert r.status_code == 200, r.text
    token = r.json()["access_token"]
    assert r.json()["user"]["role"] == "hr"

    me = client.get("/auth/me", headers=_auth_headers(token))
    assert me.status_code == 200, me.text
    assert me.json()["user"]["email"] == "hr@example.com"

    assert _login(client, email="hr@example.com", password="wrong-pass").status_code == 401
    assert _login(client, email="nobody@example.com").status_code == 401


def test_seed_admin_only_once_and_register_is_admin_only(client):
    r = client.post("/auth/seed-admin", json={"email": "admin@example.com", "password": "Adminpass1"})
    assert r.status_code == 201, r.text
    again = client.post("/auth/seed-admin", json={"email": "admin2@example.com", "password": "Adminpass1"})
    assert again.status_code == 409

    admin_token = _login(client, email="admin@example.com", password="Adminpass1").json()["access_token"]
    r = client.post(
        "/auth/register",
        headers=_auth_headers(admin_token),
        json={"name": "Dev", "email": "dev@example.com", "password": "Devpass123", "role": "employee", "department": "Eng"},
    )
    assert r.status_code == 201, r.text
    assert r.json()["user"]["department"] == "Eng"

    dev_token = _login(client, email="dev@example.com", password="Devpass123").json()["access_token"]
    r = client.post(
        "/auth/register",
        headers=_auth_headers(dev_token),
        json={"name": "Sneaky", "email": "s@example.com", "password": "Devpass123", "role": "admin"},
    )
    assert r.status_code == 403, r.text

    assert client.post("/auth/register", json={}).status_code == 401


def test_logout_endpoint_exists(client):
    r = client.post("/auth/logout")
    assert r.status_code == 200, r.text
    assert "message" in r.json()
