from __future__ import annotations

from pydantic import BaseModel


class QuizQuestionPublic(BaseModel):
    id: int
    moduleId: int
    question: str
    options: list[str]
    order: int


class QuizAnswerRequest(BaseModel):
    answer: str


class QuizAnswerResponse(BaseModel):
    isCorrect: bool
    explanation: str
