from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class AchievementPublic(BaseModel):
    id: int
    name: str
    description: str
    badgeImage: str | None
    moduleId: int | None


class UserAchievementPublic(BaseModel):
    id: str
    achievementId: int
    earnedAt: str | None
    metadata: dict[str, Any] | None
    achievement: AchievementPublic
