from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class LearningStats(BaseModel):
    completedTopics: int
    averageQuizScore: float
    strugglingTopics: list[str]


class RecommendationPublic(BaseModel):
    nextTopic: str
    reason: str
    suggestedResources: list[str]
    difficulty: Literal["beginner", "intermediate", "advanced"]


class LearningPathResponse(BaseModel):
    userStats: LearningStats
    recommendation: RecommendationPublic
    source: str
