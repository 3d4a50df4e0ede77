"""Merge rules for a learner's (user, module, section) progress record.

Kept free of any storage concerns so the invariants can be checked directly:

- completion from non-quiz events is sticky, a later ``completed=False`` never
  downgrades it;
- ``time_spent`` only ever grows by the submitted delta;
- ``completed_at`` is written only by a completing event and never cleared;
- ``last_accessed`` is refreshed by every event.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

# Upper bound of the INTEGER column holding the accumulated minutes.
MAX_TIME_SPENT = 2**31 - 1


@dataclass(frozen=True)
class ProgressState:
    completed: bool = False
    score: int | None = None
    time_spent: int = 0
    last_accessed: datetime | None = None
    completed_at: datetime | None = None


@dataclass(frozen=True)
class ProgressEvent:
    completed: bool = False
    time_spent: int = 0
    quiz_score: int | None = None
    # Only meaningful for quiz events; resolved by the caller against the quiz policy.
    passed: bool = False

    @property
    def is_quiz(self) -> bool:
        return self.quiz_score is not None


def merge_progress(old: ProgressState | None, incoming: ProgressEvent, *, now: datetime) -> ProgressState:
    base = old or ProgressState()
    time_spent = min(MAX_TIME_SPENT, int(base.time_spent or 0) + max(0, int(incoming.time_spent or 0)))

    if incoming.is_quiz:
        completes = bool(incoming.passed)
        return replace(
            base,
            completed=completes,
            score=int(incoming.quiz_score),
            time_spent=time_spent,
            last_accessed=now,
            completed_at=now if completes else base.completed_at,
        )

    completed = bool(base.completed) or bool(incoming.completed)
    first_completion = completed and not base.completed
    completed_at = base.completed_at
    if first_completion or (completed and completed_at is None):
        completed_at = now

    return replace(
        base,
        completed=completed,
        time_spent=time_spent,
        last_accessed=now,
        completed_at=completed_at,
    )
