from __future__ import annotations

import logging

from cryptoacademy.core.config import settings

logger = logging.getLogger(__name__)

_warned: set[str] = set()


def pass_threshold_for(quiz_id: str) -> int:
    """Passing score (percent) for a quiz submitted through the progress ledger.

    Per-quiz overrides come from QUIZ_PASS_THRESHOLD_OVERRIDES. An override that
    disagrees with the ledger default is reported once per quiz rather than
    reconciled here.
    """
    default = int(settings.progress_quiz_pass_threshold)
    overrides = settings.quiz_pass_threshold_overrides or {}
    key = str(quiz_id or "").strip()

    if key not in overrides:
        return default

    value = int(overrides[key])
    if value != default and key not in _warned:
        _warned.add(key)
        logger.warning(
            "quiz %s passes at %s%% while the progress default is %s%%",
            key,
            value,
            default,
        )
    return value


def is_passing(quiz_id: str, score: int | float) -> bool:
    return float(score) >= float(pass_threshold_for(quiz_id))
