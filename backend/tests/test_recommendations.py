import httpx

from cryptoacademy.core.config import settings
from cryptoacademy.db.session import SessionLocal
from cryptoacademy.models.user import User
from cryptoacademy.services.recommendations import (
    RecommendationService,
    fallback_recommendation,
    learning_stats,
    recommend_next_topic_llm,
)


class _Resp:
    def __init__(self, payload: dict):
        self._payload = payload

    def raise_for_status(self):
        return None

    def json(self):
        return self._payload


class _ClientOk:
    def __init__(self, *args, **kwargs):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def post(self, url, json, headers=None):
        return _Resp(
            {
                "choices": [
                    {
                        "message": {
                            "content": '{"nextTopic": "Smart Contracts", "reason": "ready for it", '
                            '"suggestedResources": ["/modules/module3/smart-contracts"], "difficulty": "intermediate"}'
                        }
                    }
                ]
            }
        )


class _ClientTimeout(_ClientOk):
    def post(self, url, json, headers=None):
        raise httpx.ReadTimeout("timed out")


class _ClientBadJson(_ClientOk):
    def post(self, url, json, headers=None):
        return _Resp({"choices": [{"message": {"content": "not-json"}}]})


class _HtmlResp(_Resp):
    def json(self):
        raise ValueError("Expecting value: line 1 column 1 (char 0)")


class _ClientHtmlGateway(_ClientOk):
    def post(self, url, json, headers=None):
        return _HtmlResp({})


def _enable_llm(monkeypatch, client_cls):
    monkeypatch.setattr(settings, "llm_enabled", True)
    monkeypatch.setattr(settings, "llm_api_key", "sk-test")
    monkeypatch.setattr(settings, "llm_base_url", "http://llm")

    import cryptoacademy.services.recommendations as rec_mod

    monkeypatch.setattr(rec_mod.httpx, "Client", client_cls)


STATS = {"completedTopics": 3, "averageQuizScore": 0.8, "strugglingTopics": []}


def test_llm_recommendation_ok(monkeypatch):
    _enable_llm(monkeypatch, _ClientOk)

    rec = recommend_next_topic_llm(stats=STATS)
    assert rec is not None
    assert rec.nextTopic == "Smart Contracts"
    assert rec.difficulty == "intermediate"


def test_llm_timeout_returns_none(monkeypatch):
    _enable_llm(monkeypatch, _ClientTimeout)

    debug: dict = {}
    assert recommend_next_topic_llm(stats=STATS, debug_out=debug) is None
    assert debug["error"] == "http:ReadTimeout"


def test_llm_bad_json_returns_none(monkeypatch):
    _enable_llm(monkeypatch, _ClientBadJson)

    debug: dict = {}
    assert recommend_next_topic_llm(stats=STATS, debug_out=debug) is None
    assert debug["error"] == "bad_json"


def test_llm_disabled_by_default():
    assert recommend_next_topic_llm(stats=STATS) is None


def test_fallback_prefers_struggling_topic():
    rec = fallback_recommendation({"strugglingTopics": ["bitcoin-quiz"]}, set())
    assert rec.nextTopic == "Bitcoin: The First Cryptocurrency"
    assert rec.suggestedResources == ["/modules/module1/bitcoin"]


def test_fallback_picks_next_unfinished_topic():
    rec = fallback_recommendation({"strugglingTopics": []}, {(1, "digital-currencies")})
    assert rec.nextTopic == "History and Evolution of Money"


def test_learning_stats_use_best_quiz_score(client, user, course_id):
    for score in (40, 65):
        client.post(
            "/api/learning-path/progress",
            json={"moduleId": 1, "courseId": course_id, "sectionId": "bitcoin-quiz", "quizScore": score},
            headers=user["headers"],
        )
    client.post(
        "/api/learning-path/progress",
        json={"moduleId": 1, "courseId": course_id, "sectionId": "altcoins-tokens-quiz", "quizScore": 95},
        headers=user["headers"],
    )

    with SessionLocal() as db:
        stats = learning_stats(db, db.get(User, user["id"]))

    assert stats["completedTopics"] == 2
    assert stats["averageQuizScore"] == 0.8
    assert stats["strugglingTopics"] == ["bitcoin-quiz"]


def test_recommendations_endpoint_caches_until_progress_changes(client, user, course_id, memory_redis):
    r = client.get("/api/learning-path/recommendations", headers=user["headers"])
    assert r.status_code == 200
    body = r.json()
    assert body["source"] == "fallback"
    assert body["recommendation"]["nextTopic"] == "Introduction to Digital Currencies"
    assert memory_redis.get(f"learning_path:{user['id']}") is not None

    client.post(
        "/api/learning-path/progress",
        json={"moduleId": 1, "courseId": course_id, "sectionId": "digital-currencies", "completed": True},
        headers=user["headers"],
    )
    assert memory_redis.get(f"learning_path:{user['id']}") is None

    r = client.get("/api/learning-path/recommendations", headers=user["headers"])
    assert r.json()["recommendation"]["nextTopic"] == "History and Evolution of Money"


def test_recommendation_service_uses_llm_when_available(user, monkeypatch):
    _enable_llm(monkeypatch, _ClientOk)

    with SessionLocal() as db:
        out = RecommendationService(db).get(db.get(User, user["id"]))
    assert out["source"] == "llm"
    assert out["recommendation"]["nextTopic"] == "Smart Contracts"


def test_llm_non_json_body_returns_none(monkeypatch):
    _enable_llm(monkeypatch, _ClientHtmlGateway)

    debug: dict = {}
    assert recommend_next_topic_llm(stats=STATS, debug_out=debug) is None
    assert debug["error"] == "bad_json"


def test_llm_html_error_page_is_parsed_by_httpx_as_bad_json(monkeypatch):
    def _gateway(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>", headers={"content-type": "text/html"})

    real_client = httpx.Client

    def _client(*args, **kwargs):
        return real_client(transport=httpx.MockTransport(_gateway), **kwargs)

    _enable_llm(monkeypatch, _client)

    debug: dict = {}
    assert recommend_next_topic_llm(stats=STATS, debug_out=debug) is None
    assert debug["error"] == "bad_json"


def test_recommendations_endpoint_falls_back_on_non_json_llm_body(client, user, monkeypatch):
    _enable_llm(monkeypatch, _ClientHtmlGateway)

    r = client.get("/api/learning-path/recommendations", headers=user["headers"])
    assert r.status_code == 200
    body = r.json()
    assert body["source"] == "fallback"
    assert body["recommendation"]["nextTopic"] == "Introduction to Digital Currencies"
