import json
import sys
from pathlib import Path
import uuid
import time

import pytest
from fastapi.testclient import TestClient

backend_dir = Path(__file__).resolve().parents[1]
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from sqlalchemy import create_engine, select
from sqlalchemy.pool import StaticPool

from cryptoacademy.db.base import Base
from cryptoacademy.db import session as session_module
from cryptoacademy.main import create_app

# Import models so that they are registered in Base.metadata before create_all.
import cryptoacademy.models  # noqa: F401


class _MemoryRedis:
    def __init__(self):
        self._data: dict[str, tuple[str, float | None]] = {}

    def ping(self):
        return True

    def _now(self) -> float:
        return time.time()

    def _get_entry(self, key: str):
        v = self._data.get(key)
        if not v:
            return None
        value, exp = v
        if exp is not None and exp <= self._now():
            self._data.pop(key, None)
            return None
        return value, exp

    def get(self, key: str):
        entry = self._get_entry(key)
        return entry[0] if entry else None

    def set(self, key: str, value: str, ex: int | None = None):
        exp = (self._now() + int(ex)) if ex else None
        self._data[key] = (value, exp)
        return True

    def delete(self, key: str):
        return 1 if self._data.pop(key, None) is not None else 0

    def incr(self, key: str):
        cur = self.get(key)
        n = int(cur or 0) + 1
        _, exp = self._data.get(key, ("", None))
        self._data[key] = (str(n), exp)
        return n

    def expire(self, key: str, seconds: int):
        entry = self._get_entry(key)
        if not entry:
            return False
        value, _ = entry
        self._data[key] = (value, self._now() + int(seconds))
        return True

    def ttl(self, key: str):
        entry = self._get_entry(key)
        if not entry:
            return -2
        _, exp = entry
        if exp is None:
            return -1
        return max(0, int(exp - self._now()))

    def clear(self):
        self._data.clear()


# Configure test DB (SQLite in-memory) at import time so all tests importing
# cryptoacademy.db.session.SessionLocal will get the patched version.
_engine = create_engine(
    "sqlite+pysqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
Base.metadata.create_all(bind=_engine)
session_module.engine = _engine
session_module.SessionLocal = session_module.sessionmaker(autocommit=False, autoflush=False, bind=_engine)


def _seed_catalog() -> None:
    from cryptoacademy import catalog
    from cryptoacademy.models.achievement import Achievement
    from cryptoacademy.models.course import Course
    from cryptoacademy.models.quiz_bank import QuizQuestion

    with session_module.SessionLocal() as db:
        if db.scalar(select(Course).limit(1)) is not None:
            return

        for entry in catalog.COURSES:
            db.add(Course(slug=entry.slug, title=entry.title, description=entry.description, is_active=True))
        for badge in catalog.ACHIEVEMENTS:
            db.add(
                Achievement(
                    name=badge.name,
                    description=badge.description,
                    badge_image=badge.badge_image,
                    module_id=badge.module_id,
                )
            )
        for entry in catalog.QUIZ_BANK:
            db.add(
                QuizQuestion(
                    module_id=entry.module_id,
                    order=entry.order,
                    question=entry.question,
                    options=json.dumps(list(entry.options)),
                    correct_answer=entry.correct_answer,
                    explanation=entry.explanation,
                )
            )
        db.commit()


_seed_catalog()


# Stub Redis at import time (rate limiting, health, recommendation cache).
_mem_redis = _MemoryRedis()
import cryptoacademy.core.redis_client as redis_client_module

redis_client_module.get_redis = lambda: _mem_redis

import cryptoacademy.core.rate_limit as rate_limit_module
rate_limit_module.get_redis = lambda: _mem_redis

import cryptoacademy.routers.health as health_router_module
health_router_module.get_redis = lambda: _mem_redis

import cryptoacademy.services.recommendations as recommendations_module
recommendations_module.get_redis = lambda: _mem_redis


@pytest.fixture(autouse=True)
def _reset_redis():
    # rate-limit counters would otherwise accumulate across the whole session
    _mem_redis.clear()
    yield


@pytest.fixture()
def memory_redis():
    return _mem_redis


def _get_db_override():
    db = session_module.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def make_client() -> TestClient:
    app = create_app()
    app.dependency_overrides[session_module.get_db] = _get_db_override
    return TestClient(app)


@pytest.fixture(scope="session")
def client():
    return make_client()


@pytest.fixture()
def db():
    with session_module.SessionLocal() as session:
        yield session


@pytest.fixture()
def course_id():
    from cryptoacademy.models.course import Course

    with session_module.SessionLocal() as db:
        return int(db.scalar(select(Course.id).where(Course.slug == "crypto-foundations")))


def register_user(client: TestClient, *, username: str | None = None, password: str = "testpass123") -> dict:
    username = username or f"test_{uuid.uuid4().hex[:8]}"
    r = client.post("/api/register", json={"username": username, "password": password})
    assert r.status_code == 201, r.text
    token = r.cookies.get("academy_session")
    assert token
    # the session client is shared, so tests authenticate explicitly with a bearer header
    client.cookies.clear()
    return {
        "id": uuid.UUID(r.json()["user"]["id"]),
        "username": username,
        "password": password,
        "token": token,
        "headers": {"Authorization": f"Bearer {token}"},
    }


@pytest.fixture()
def user(client):
    return register_user(client)


@pytest.fixture()
def auth_headers(user):
    return user["headers"]


@pytest.fixture()
def make_user(client):
    def _make(**kwargs) -> dict:
        return register_user(client, **kwargs)

    return _make
