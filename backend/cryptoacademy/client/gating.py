"""Read-only checks that decide what a module page unlocks."""

from __future__ import annotations

from typing import Iterable

from cryptoacademy import catalog
from cryptoacademy.client.api import ProgressRecord


def is_section_completed(records: Iterable[ProgressRecord], module_id: int, section_id: str) -> bool:
    return any(r.module_id == module_id and r.section_id == section_id and r.completed for r in records)


def completed_sections(records: Iterable[ProgressRecord], module_id: int) -> set[str]:
    module = catalog.get_module(module_id)
    if module is None:
        return set()
    topics = set(module.topic_ids)
    return {r.section_id for r in records if r.module_id == module_id and r.completed and r.section_id in topics}


def module_completion_percent(records: Iterable[ProgressRecord], module_id: int) -> int:
    module = catalog.get_module(module_id)
    if module is None or not module.topics:
        return 0
    done = len(completed_sections(records, module_id))
    return round(done / len(module.topics) * 100)


def is_module_quiz_unlocked(records: Iterable[ProgressRecord], module_id: int) -> bool:
    module = catalog.get_module(module_id)
    if module is None or not module.topics:
        return False
    return len(completed_sections(records, module_id)) == len(module.topics)


def next_topic_unlocked(records: Iterable[ProgressRecord], module_id: int, topic_id: str) -> str | None:
    """Id of the topic after ``topic_id`` once ``topic_id`` is complete, else None."""
    module = catalog.get_module(module_id)
    if module is None or topic_id not in module.topic_ids:
        return None
    ids = module.topic_ids
    idx = ids.index(topic_id)
    if idx + 1 >= len(ids):
        return None
    if not is_section_completed(records, module_id, topic_id):
        return None
    return ids[idx + 1]
