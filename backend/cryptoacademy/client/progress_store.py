from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from cryptoacademy.client.api import AcademyClient, ProgressRecord

logger = logging.getLogger(__name__)

Subscriber = Callable[[tuple[ProgressRecord, ...]], Awaitable[None] | None]


class ProgressRefreshFailed(Exception):
    """The write was accepted but the refetch that follows it failed."""

    def __init__(self, result: dict[str, Any]):
        super().__init__("progress saved but refresh failed")
        self.result = result


class ProgressStore:
    """The learner's progress list, owned by whoever creates it and passed to each page.

    The server is authoritative: writes go through the API and are followed by a
    full refetch. Local records are never patched ahead of that refetch.
    """

    def __init__(self, api: AcademyClient, *, course_id: int):
        self.api = api
        self.course_id = int(course_id)
        self._records: tuple[ProgressRecord, ...] = ()
        self._subscribers: list[Subscriber] = []
        self.is_loading = False
        self.error: Exception | None = None

    @property
    def records(self) -> tuple[ProgressRecord, ...]:
        return self._records

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    async def _notify(self) -> None:
        for callback in list(self._subscribers):
            result = callback(self._records)
            if result is not None:
                await result

    async def refresh(self) -> tuple[ProgressRecord, ...]:
        self.is_loading = True
        try:
            records = await self.api.fetch_progress()
        except Exception as e:
            self.error = e
            raise
        finally:
            self.is_loading = False

        self.error = None
        self._records = tuple(records)
        await self._notify()
        return self._records

    async def update_progress(
        self,
        module_id: int,
        section_id: str,
        completed: bool,
        order: int | None = None,
        time_spent: int | None = None,
        quiz_score: float | None = None,
        page_url: str | None = None,
        next_url: str | None = None,
        section_name: str | None = None,
        course_id: int | None = None,
    ) -> dict[str, Any]:
        result = await self.api.record_progress(
            module_id=module_id,
            course_id=course_id if course_id is not None else self.course_id,
            section_id=section_id,
            completed=completed,
            time_spent=time_spent,
            quiz_score=quiz_score,
            extra={"order": order, "pageUrl": page_url, "nextUrl": next_url, "sectionName": section_name},
        )
        try:
            await self.refresh()
        except Exception as e:
            logger.warning("progress saved for module=%s section=%s but refresh failed: %s", module_id, section_id, e)
            raise ProgressRefreshFailed(result) from e
        return result
