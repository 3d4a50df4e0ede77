"""Async HTTP client for the learner-facing progress endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class UnauthorizedError(ApiError):
    pass


@dataclass(frozen=True)
class ProgressRecord:
    module_id: int
    section_id: str
    completed: bool
    course_id: int | None = None
    score: int | None = None
    time_spent: int = 0
    last_accessed: str | None = None
    completed_at: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "ProgressRecord":
        return cls(
            module_id=int(data["moduleId"]),
            section_id=str(data["sectionId"]),
            completed=bool(data.get("completed")),
            course_id=int(data["courseId"]) if data.get("courseId") is not None else None,
            score=int(data["score"]) if data.get("score") is not None else None,
            time_spent=int(data.get("timeSpent") or 0),
            last_accessed=data.get("lastAccessed"),
            completed_at=data.get("completedAt"),
        )


def _error_message(r: httpx.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        return r.text or r.reason_phrase
    if isinstance(body, dict):
        return str(body.get("error") or body.get("error_message") or body.get("detail") or r.reason_phrase)
    return r.reason_phrase


class AcademyClient:
    """Holds one learner session; the session cookie lives in the underlying httpx client."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "AcademyClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        r = await self._http.request(method, path, **kwargs)
        if r.status_code == 401:
            raise UnauthorizedError(401, _error_message(r))
        if r.status_code >= 400:
            raise ApiError(r.status_code, _error_message(r))
        return r.json()

    async def login(self, username: str, password: str) -> dict[str, Any]:
        return await self._request("POST", "/api/login", json={"username": username, "password": password})

    async def fetch_progress(self) -> list[ProgressRecord]:
        data = await self._request("GET", "/api/learning-path/progress")
        return [ProgressRecord.from_json(item) for item in data or []]

    async def record_progress(
        self,
        *,
        module_id: int,
        course_id: int,
        section_id: str,
        completed: bool,
        time_spent: int | None = None,
        quiz_score: float | None = None,
        extra: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "moduleId": module_id,
            "courseId": course_id,
            "sectionId": section_id,
            "completed": completed,
        }
        if time_spent is not None:
            payload["timeSpent"] = time_spent
        if quiz_score is not None:
            payload["quizScore"] = quiz_score
        for key, value in (extra or {}).items():
            if value is not None:
                payload[key] = value

        logger.debug("recording progress module=%s section=%s completed=%s", module_id, section_id, completed)
        return await self._request("POST", "/api/learning-path/progress", json=payload)
