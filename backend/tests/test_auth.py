import uuid

from sqlalchemy import select

from cryptoacademy.core.security import hash_password
from cryptoacademy.db.session import SessionLocal
from cryptoacademy.models.security_audit import SecurityAuditEvent
from cryptoacademy.models.user import User, UserRole


def _create_user(*, username: str, password: str, role: UserRole) -> None:
    with SessionLocal() as db:
        db.add(User(username=username, role=role, password_hash=hash_password(password)))
        db.commit()


def _auth_headers_for_user(client, *, username: str, password: str) -> dict[str, str]:
    r = client.post(
        "/api/token",
        data={"username": username, "password": password},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert r.status_code == 200
    token = r.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


def test_register_returns_user_and_session_cookie(client):
    username = f"new_{uuid.uuid4().hex[:8]}"
    r = client.post("/api/register", json={"username": username, "email": f"{username}@example.com", "password": "longenough1"})
    assert r.status_code == 201
    assert r.json()["user"]["username"] == username
    assert r.json()["user"]["role"] == "user"
    assert "academy_session" in r.cookies
    client.cookies.clear()

    with SessionLocal() as db:
        uid = db.scalar(select(User.id).where(User.username == username))
        events = db.scalars(select(SecurityAuditEvent.event_type).where(SecurityAuditEvent.user_id == uid)).all()
    assert "auth_register_success" in events


def test_register_rejects_duplicates_and_weak_input(client, user):
    r = client.post("/api/register", json={"username": user["username"], "password": "longenough1"})
    assert r.status_code == 400
    assert r.json()["error"] == "Username already exists"

    r = client.post("/api/register", json={"username": "ab", "password": "longenough1"})
    assert r.status_code == 400

    r = client.post("/api/register", json={"username": f"u_{uuid.uuid4().hex[:6]}", "password": "short"})
    assert r.status_code == 400

    r = client.post("/api/register", json={"username": f"u_{uuid.uuid4().hex[:6]}", "email": "nope", "password": "longenough1"})
    assert r.status_code == 400
    client.cookies.clear()


def test_login_with_wrong_password_is_unauthorized(client, user):
    r = client.post("/api/login", json={"username": user["username"], "password": "wrong-password"})
    assert r.status_code == 401
    assert r.json()["error"] == "Incorrect username or password"


def test_current_user_requires_session(client, user):
    assert client.get("/api/user").status_code == 401

    r = client.get("/api/user", headers=user["headers"])
    assert r.status_code == 200
    assert r.json()["username"] == user["username"]


def test_token_for_deleted_user_is_invalid_session(client, make_user):
    u = make_user()
    with SessionLocal() as db:
        db.query(SecurityAuditEvent).filter(SecurityAuditEvent.user_id == u["id"]).delete()
        db.query(User).filter(User.id == u["id"]).delete()
        db.commit()

    r = client.get("/api/user", headers=u["headers"])
    assert r.status_code == 401
    assert r.json()["error"] == "Invalid session"


def test_logout_clears_cookie(client):
    r = client.post("/api/logout")
    assert r.status_code == 200
    assert r.json() == {"message": "Logout successful"}


def test_only_admin_can_create_courses(client, user):
    r = client.post("/api/courses", json={"slug": "defi-deep-dive", "title": "DeFi"}, headers=user["headers"])
    assert r.status_code == 403

    admin_name = f"admin_{uuid.uuid4().hex[:8]}"
    _create_user(username=admin_name, password="adminpass123", role=UserRole.admin)
    headers = _auth_headers_for_user(client, username=admin_name, password="adminpass123")

    slug = f"defi-{uuid.uuid4().hex[:6]}"
    r = client.post("/api/courses", json={"slug": slug, "title": "DeFi"}, headers=headers)
    assert r.status_code == 201
    assert r.json()["slug"] == slug
    assert r.json()["isActive"] is True

    r = client.post("/api/courses", json={"slug": slug, "title": "DeFi again"}, headers=headers)
    assert r.status_code == 409

    r = client.get("/api/courses", headers=user["headers"])
    assert slug in [c["slug"] for c in r.json()]
