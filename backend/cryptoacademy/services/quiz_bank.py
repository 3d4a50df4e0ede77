from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from cryptoacademy.models.quiz_bank import QuizAnswer, QuizQuestion
from cryptoacademy.models.user import User

logger = logging.getLogger(__name__)

MAX_ANSWER_LENGTH = 500


class QuizQuestionNotFound(Exception):
    pass


@dataclass(frozen=True)
class AnswerOutcome:
    is_correct: bool
    explanation: str


def question_options(q: QuizQuestion) -> list[str]:
    try:
        raw = json.loads(q.options or "[]")
    except ValueError:
        logger.warning("quiz question %s has malformed options", q.id)
        return []
    return [str(o) for o in raw] if isinstance(raw, list) else []


def _is_correct(*, question: QuizQuestion, answer: str) -> bool:
    expected = (question.correct_answer or "").strip()
    got = (answer or "").strip()
    if not got:
        return False
    return expected.lower() == got.lower()


class QuizBankService:
    """Per-module question bank with server-side answer checking."""

    def __init__(self, db: Session):
        self.db = db

    def list_for_module(self, module_id: int) -> List[QuizQuestion]:
        return list(
            self.db.scalars(
                select(QuizQuestion).where(QuizQuestion.module_id == int(module_id)).order_by(QuizQuestion.order, QuizQuestion.id)
            ).all()
        )

    def answer(self, module_id: int, question_id: int, answer: str, *, user: User | None = None) -> AnswerOutcome:
        q = self.db.get(QuizQuestion, int(question_id))
        if q is None or int(q.module_id) != int(module_id):
            raise QuizQuestionNotFound(str(question_id))

        ok = _is_correct(question=q, answer=answer)

        # anonymous answers are checked but not stored
        if user is not None:
            self.db.add(
                QuizAnswer(
                    user_id=user.id,
                    question_id=q.id,
                    selected_answer=str(answer or "")[:MAX_ANSWER_LENGTH],
                    is_correct=ok,
                )
            )
            self.db.commit()

        return AnswerOutcome(is_correct=ok, explanation=q.explanation or "")
