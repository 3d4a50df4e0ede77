from sqlalchemy import select

from cryptoacademy.db.session import SessionLocal
from cryptoacademy.models.achievement import Achievement


def _achievement_id(name: str) -> int:
    with SessionLocal() as db:
        return int(db.scalar(select(Achievement.id).where(Achievement.name == name)))


def test_catalog_is_public(client):
    r = client.get("/api/achievements")
    assert r.status_code == 200
    names = [a["name"] for a in r.json()]
    assert "Crypto Curious" in names
    assert names == sorted(names)


def test_award_once(client, user):
    aid = _achievement_id("Crypto Curious")

    r = client.post(f"/api/achievements/{aid}/award", headers=user["headers"])
    assert r.status_code == 200
    body = r.json()
    assert body["achievement"]["name"] == "Crypto Curious"
    assert body["metadata"]["certificate"]["name"] == "Crypto Curious"
    assert "awardedAt" in body["metadata"]

    r = client.post(f"/api/achievements/{aid}/award", headers=user["headers"])
    assert r.status_code == 400
    assert r.json()["error"] == "Achievement already earned"

    r = client.get("/api/achievements/earned", headers=user["headers"])
    assert [a["achievementId"] for a in r.json()] == [aid]

    r = client.get("/api/user/metrics", headers=user["headers"])
    assert r.json()["earnedBadges"] == 1


def test_award_unknown(client, user):
    r = client.post("/api/achievements/98765/award", headers=user["headers"])
    assert r.status_code == 404


def test_earned_requires_session(client):
    assert client.get("/api/achievements/earned").status_code == 401
