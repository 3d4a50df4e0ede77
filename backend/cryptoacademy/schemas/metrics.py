from __future__ import annotations

from pydantic import BaseModel


class UserMetricsResponse(BaseModel):
    completedQuizzes: int
    quizAccuracy: int
    earnedBadges: int
    totalLearningMinutes: int
    learningStreak: int
