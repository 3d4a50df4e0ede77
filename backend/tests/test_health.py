from fastapi.testclient import TestClient

from cryptoacademy.main import create_app


def test_health_ok():
    app = create_app()
    client = TestClient(app)

    r = client.get("/health")
    assert r.status_code == 200
    assert r.json().get("status") == "ok"


def test_health_live():
    app = create_app()
    client = TestClient(app)

    r = client.get("/health/live")
    assert r.status_code == 200
    assert r.json().get("status") == "live"


def test_health_ready_checks_db_and_redis(client):
    r = client.get("/health/ready")
    assert r.status_code == 200
    assert r.json() == {"status": "ready"}


def test_request_id_is_echoed(client):
    r = client.get("/health", headers={"X-Request-ID": "rid-123"})
    assert r.headers["X-Request-ID"] == "rid-123"
    assert r.headers["X-Content-Type-Options"] == "nosniff"


def test_foreign_origin_cannot_post(client):
    r = client.post("/api/login", json={"username": "x", "password": "y"}, headers={"Origin": "https://evil.example"})
    assert r.status_code == 403
    assert r.json()["error"] == "invalid origin"
