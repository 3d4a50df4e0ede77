from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cryptoacademy.core.ids import int_id
from cryptoacademy.core.rate_limit import rate_limit
from cryptoacademy.core.security import get_current_user
from cryptoacademy.db.session import get_db
from cryptoacademy.models.achievement import Achievement, UserAchievement
from cryptoacademy.models.user import User
from cryptoacademy.schemas.achievement import AchievementPublic, UserAchievementPublic
from cryptoacademy.services.achievements import AchievementAlreadyEarned, AchievementNotFound, AchievementService

router = APIRouter(prefix="/api/achievements", tags=["achievements"])


def _achievement_public(a: Achievement) -> dict:
    return {
        "id": int(a.id),
        "name": a.name,
        "description": a.description or "",
        "badgeImage": a.badge_image,
        "moduleId": a.module_id,
    }


def _earned_public(ua: UserAchievement) -> dict:
    try:
        meta = json.loads(ua.meta) if ua.meta else None
    except ValueError:
        meta = None
    return {
        "id": str(ua.id),
        "achievementId": int(ua.achievement_id),
        "earnedAt": ua.earned_at.isoformat() if ua.earned_at else None,
        "metadata": meta if isinstance(meta, dict) else None,
        "achievement": _achievement_public(ua.achievement),
    }


@router.get("", response_model=list[AchievementPublic])
def list_achievements(db: Session = Depends(get_db)):
    return [_achievement_public(a) for a in AchievementService(db).list_all()]


@router.get("/earned", response_model=list[UserAchievementPublic])
def earned_achievements(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return [_earned_public(ua) for ua in AchievementService(db).earned(user)]


@router.post("/{achievement_id}/award", response_model=UserAchievementPublic)
def award_achievement(
    achievement_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _: object = rate_limit(key_prefix="achievement_award", limit=30, window_seconds=60),
):
    aid = int_id(achievement_id, field="achievementId")
    try:
        award = AchievementService(db).award(user, aid)
    except AchievementNotFound as e:
        raise HTTPException(status_code=404, detail="Achievement not found") from e
    except AchievementAlreadyEarned as e:
        raise HTTPException(status_code=400, detail="Achievement already earned") from e
    return _earned_public(award)
