from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cryptoacademy.core.ids import int_id
from cryptoacademy.core.rate_limit import rate_limit
from cryptoacademy.core.security import get_optional_user
from cryptoacademy.db.session import get_db
from cryptoacademy.models.quiz_bank import QuizQuestion
from cryptoacademy.models.user import User
from cryptoacademy.schemas.quiz import QuizAnswerRequest, QuizAnswerResponse, QuizQuestionPublic
from cryptoacademy.services.quiz_bank import MAX_ANSWER_LENGTH, QuizBankService, QuizQuestionNotFound, question_options

router = APIRouter(prefix="/api/modules", tags=["quizzes"])


def _question_public(q: QuizQuestion) -> dict:
    # the correct answer never leaves the server
    return {
        "id": int(q.id),
        "moduleId": int(q.module_id),
        "question": q.question,
        "options": question_options(q),
        "order": int(q.order or 0),
    }


@router.get("/{module_id}/quizzes", response_model=list[QuizQuestionPublic])
def list_quizzes(module_id: str, db: Session = Depends(get_db)):
    mid = int_id(module_id, field="moduleId")
    return [_question_public(q) for q in QuizBankService(db).list_for_module(mid)]


@router.post("/{module_id}/quizzes/{quiz_id}/answer", response_model=QuizAnswerResponse)
def answer_quiz(
    module_id: str,
    quiz_id: str,
    body: QuizAnswerRequest,
    db: Session = Depends(get_db),
    user: User | None = Depends(get_optional_user),
    _: object = rate_limit(key_prefix="quiz_answer", limit=120, window_seconds=60),
):
    mid = int_id(module_id, field="moduleId")
    qid = int_id(quiz_id, field="quizId")
    if len(body.answer) > MAX_ANSWER_LENGTH:
        raise HTTPException(status_code=400, detail="invalid answer")

    try:
        outcome = QuizBankService(db).answer(mid, qid, body.answer, user=user)
    except QuizQuestionNotFound as e:
        raise HTTPException(status_code=404, detail="Quiz not found") from e

    return {"isCorrect": outcome.is_correct, "explanation": outcome.explanation}
