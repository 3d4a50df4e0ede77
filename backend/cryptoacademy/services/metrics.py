from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cryptoacademy.models._time import as_utc, utcnow
from cryptoacademy.models.achievement import UserAchievement
from cryptoacademy.models.progress import ModuleProgress
from cryptoacademy.models.user import User

# Completed sections with little or no tracked time still count this many minutes.
MIN_COMPLETED_MINUTES = 5
ACTIVE_WINDOW_MINUTES = 60
STREAK_LOOKBACK_DAYS = 30


class MetricsService:
    """Read-only aggregates over a learner's progress records."""

    def __init__(self, db: Session):
        self.db = db

    def user_metrics(self, user: User, *, now: datetime | None = None) -> Dict[str, Any]:
        now = as_utc(now) or utcnow()

        rows = self.db.execute(
            select(
                ModuleProgress.time_spent,
                ModuleProgress.last_accessed,
                ModuleProgress.completed,
                ModuleProgress.score,
            ).where(ModuleProgress.user_id == user.id)
        ).all()

        total_minutes = 0
        quizzes_completed = 0
        score_sum = 0
        activity_days: set = set()

        for time_spent, last_accessed, completed, score in rows:
            base = int(time_spent or 0)
            last = as_utc(last_accessed)

            if completed and base < MIN_COMPLETED_MINUTES:
                total_minutes += MIN_COMPLETED_MINUTES
            elif base == 0 and last is not None:
                # untracked but recently opened: count the minutes since it was opened
                diff = int((now - last).total_seconds() // 60)
                if diff < ACTIVE_WINDOW_MINUTES:
                    total_minutes += max(1, diff)
            else:
                total_minutes += base

            if score is not None:
                quizzes_completed += 1
                score_sum += int(score)

            if last is not None:
                activity_days.add(last.date())

        badges = self.db.scalar(select(func.count(UserAchievement.id)).where(UserAchievement.user_id == user.id)) or 0

        return {
            "completedQuizzes": quizzes_completed,
            "quizAccuracy": int(round(score_sum / quizzes_completed)) if quizzes_completed else 0,
            "earnedBadges": int(badges),
            "totalLearningMinutes": max(0, int(total_minutes)),
            "learningStreak": learning_streak(activity_days, today=now.date()),
        }


def learning_streak(activity_days: set, *, today) -> int:
    # Counting starts at the most recent active day within the lookback window.
    streak = 0
    for i in range(STREAK_LOOKBACK_DAYS):
        day = today - timedelta(days=i)
        if day in activity_days:
            streak += 1
        elif streak > 0:
            break
    return streak
