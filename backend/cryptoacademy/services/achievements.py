from __future__ import annotations

import json
import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cryptoacademy.models._time import utcnow
from cryptoacademy.models.achievement import Achievement, UserAchievement
from cryptoacademy.models.user import User

logger = logging.getLogger(__name__)


class AchievementNotFound(Exception):
    pass


class AchievementAlreadyEarned(Exception):
    pass


class AchievementService:
    def __init__(self, db: Session):
        self.db = db

    def list_all(self) -> List[Achievement]:
        return list(self.db.scalars(select(Achievement).order_by(Achievement.name)).all())

    def earned(self, user: User) -> List[UserAchievement]:
        return list(
            self.db.scalars(
                select(UserAchievement)
                .where(UserAchievement.user_id == user.id)
                .order_by(UserAchievement.earned_at)
            ).all()
        )

    def award(self, user: User, achievement_id: int) -> UserAchievement:
        achievement = self.db.get(Achievement, achievement_id)
        if achievement is None:
            raise AchievementNotFound(achievement_id)

        existing = self.db.scalar(
            select(UserAchievement.id).where(
                UserAchievement.user_id == user.id,
                UserAchievement.achievement_id == achievement_id,
            )
        )
        if existing is not None:
            raise AchievementAlreadyEarned(achievement_id)

        now = utcnow()
        meta = {
            "awardedAt": now.isoformat(),
            "certificate": {
                "name": achievement.name,
                "description": achievement.description,
                "image": achievement.badge_image or "",
            },
        }
        award = UserAchievement(
            user_id=user.id,
            achievement_id=achievement.id,
            meta=json.dumps(meta, ensure_ascii=False),
            earned_at=now,
        )
        self.db.add(award)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise AchievementAlreadyEarned(achievement_id) from e

        self.db.refresh(award)
        logger.info("awarded achievement=%s to user=%s", achievement.id, user.id)
        return award
