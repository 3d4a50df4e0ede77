from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Literal

import httpx
from pydantic import BaseModel, ValidationError
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cryptoacademy import catalog
from cryptoacademy.core.config import settings
from cryptoacademy.core.redis_client import get_redis
from cryptoacademy.models.progress import ModuleProgress, QuizResponse
from cryptoacademy.models.user import User

logger = logging.getLogger(__name__)


class LearningRecommendation(BaseModel):
    nextTopic: str
    reason: str
    suggestedResources: list[str] = []
    difficulty: Literal["beginner", "intermediate", "advanced"] = "beginner"


def _extract_json(text: str) -> dict[str, Any] | None:
    if not text:
        return None

    s = text.strip()
    if s.startswith("{") and s.endswith("}"):
        try:
            return json.loads(s)
        except ValueError:
            pass

    m = re.search(r"\{[\s\S]*\}", s)
    if not m:
        return None

    try:
        return json.loads(m.group(0))
    except ValueError:
        return None


def learning_stats(db: Session, user: User) -> Dict[str, Any]:
    completed_topics = db.scalar(
        select(func.count(ModuleProgress.id)).where(
            ModuleProgress.user_id == user.id,
            ModuleProgress.completed == True,  # noqa: E712
        )
    ) or 0

    best_rows = db.execute(
        select(QuizResponse.quiz_id, func.max(QuizResponse.score))
        .where(QuizResponse.user_id == user.id)
        .group_by(QuizResponse.quiz_id)
        .order_by(QuizResponse.quiz_id)
    ).all()
    best = {quiz_id: int(score or 0) for quiz_id, score in best_rows}

    average = round(sum(best.values()) / len(best) / 100.0, 2) if best else 0.0
    threshold = int(settings.struggling_score_threshold)
    struggling = [quiz_id for quiz_id, score in best.items() if score < threshold]

    return {
        "completedTopics": int(completed_topics),
        "averageQuizScore": average,
        "strugglingTopics": struggling,
    }


def fallback_recommendation(stats: Dict[str, Any], completed_sections: set[tuple[int, str]]) -> LearningRecommendation:
    """Deterministic pick used when no LLM answer is available."""
    struggling = list(stats.get("strugglingTopics") or [])
    if struggling:
        found = catalog.find_topic(struggling[0])
        title = found[1].title if found else struggling[0]
        return LearningRecommendation(
            nextTopic=title,
            reason="Your best quiz score here is below the passing mark; a second read will pay off.",
            suggestedResources=[found[0].path(found[1].id)] if found else [],
            difficulty="beginner",
        )

    for module in catalog.MODULES:
        for topic in module.topics:
            if (module.id, topic.id) not in completed_sections:
                return LearningRecommendation(
                    nextTopic=topic.title,
                    reason=f"It is the next unfinished topic in {module.title}.",
                    suggestedResources=[module.path(topic.id)],
                    difficulty="beginner" if module.id == 1 else "intermediate",
                )

    return LearningRecommendation(
        nextTopic="Review and practice",
        reason="Every topic is complete; revisit the module quizzes to keep the material fresh.",
        suggestedResources=[],
        difficulty="advanced",
    )


def recommend_next_topic_llm(*, stats: Dict[str, Any], debug_out: dict[str, Any] | None = None) -> LearningRecommendation | None:
    if not settings.llm_enabled:
        return None

    token = (settings.llm_api_key or "").strip()
    if not token:
        if debug_out is not None:
            debug_out["error"] = "missing_token"
        return None

    def _set_debug(error: str) -> None:
        if debug_out is not None:
            debug_out["error"] = error

    prompt = (
        "As a cryptocurrency education expert, provide a personalized learning recommendation "
        "based on the following user data:\n"
        f"- Completed topics: {stats.get('completedTopics')}\n"
        f"- Average quiz score: {stats.get('averageQuizScore')}\n"
        f"- Struggling topics: {', '.join(stats.get('strugglingTopics') or [])}\n\n"
        "Respond with a JSON object: "
        '{"nextTopic": "topic name", "reason": "explanation", '
        '"suggestedResources": ["resource1", "resource2"], '
        '"difficulty": "beginner|intermediate|advanced"}'
    )
    payload = {
        "model": settings.llm_model,
        "temperature": float(settings.llm_temperature),
        "response_format": {"type": "json_object"},
        "messages": [{"role": "user", "content": prompt}],
    }
    url = str(settings.llm_base_url or "").rstrip("/") + "/chat/completions"

    try:
        timeout = httpx.Timeout(
            connect=float(settings.llm_timeout_connect),
            read=float(settings.llm_timeout_read),
            write=float(settings.llm_timeout_write),
            pool=3.0,
        )
        with httpx.Client(timeout=timeout) as client:
            r = client.post(url, json=payload, headers={"Authorization": f"Bearer {token}"})
            r.raise_for_status()
            data = r.json()
    except httpx.HTTPError as e:
        logger.warning("recommendation request failed: %s", type(e).__name__)
        _set_debug(f"http:{type(e).__name__}")
        return None
    except ValueError:
        logger.warning("recommendation response was not JSON")
        _set_debug("bad_json")
        return None

    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        _set_debug("bad_response")
        return None

    obj = _extract_json(str(content or ""))
    if obj is None:
        _set_debug("bad_json")
        return None

    try:
        return LearningRecommendation.model_validate(obj)
    except ValidationError:
        _set_debug("schema_mismatch")
        return None


class RecommendationService:
    def __init__(self, db: Session):
        self.db = db

    def _cache_key(self, user: User) -> str:
        return f"learning_path:{user.id}"

    def get(self, user: User) -> Dict[str, Any]:
        key = self._cache_key(user)
        try:
            cached = get_redis().get(key)
            if cached:
                return json.loads(cached)
        except Exception:
            logger.warning("recommendation cache read failed for user=%s", user.id)

        stats = learning_stats(self.db, user)
        rec = recommend_next_topic_llm(stats=stats)
        source = "llm"
        if rec is None:
            done = {
                (int(mid), str(sid))
                for mid, sid in self.db.execute(
                    select(ModuleProgress.module_id, ModuleProgress.section_id).where(
                        ModuleProgress.user_id == user.id,
                        ModuleProgress.completed == True,  # noqa: E712
                    )
                ).all()
            }
            rec = fallback_recommendation(stats, done)
            source = "fallback"

        result = {"userStats": stats, "recommendation": rec.model_dump(), "source": source}

        try:
            get_redis().set(key, json.dumps(result), ex=int(settings.recommendations_cache_seconds))
        except Exception:
            logger.warning("recommendation cache write failed for user=%s", user.id)

        return result

    def invalidate(self, user: User) -> None:
        try:
            get_redis().delete(self._cache_key(user))
        except Exception:
            logger.warning("recommendation cache invalidate failed for user=%s", user.id)
