from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from cryptoacademy.models._time import as_utc, utcnow
from cryptoacademy.models.course import Course, Enrollment, EnrollmentStatus
from cryptoacademy.models.progress import ModuleProgress, QuizResponse
from cryptoacademy.models.user import User
from cryptoacademy.services.courses import CourseNotFound
from cryptoacademy.services.progress_merge import ProgressEvent, ProgressState, merge_progress
from cryptoacademy.services.quiz_policy import is_passing

logger = logging.getLogger(__name__)

MAX_ENROLLMENT_PROGRESS = 100


class ProgressUpdateFailed(Exception):
    pass


@dataclass(frozen=True)
class ProgressOutcome:
    module_id: int
    section_id: str
    completed: bool
    score: int | None
    time_spent: int
    is_quiz: bool
    passed: bool | None
    enrollment_progress: int | None


def _state_of(row: ModuleProgress) -> ProgressState:
    return ProgressState(
        completed=bool(row.completed),
        score=row.score,
        time_spent=int(row.time_spent or 0),
        last_accessed=as_utc(row.last_accessed),
        completed_at=as_utc(row.completed_at),
    )


def _apply_state(row: ModuleProgress, state: ProgressState) -> None:
    row.completed = state.completed
    row.score = state.score
    row.time_spent = state.time_spent
    row.last_accessed = state.last_accessed
    row.completed_at = state.completed_at


class ProgressLedger:
    """Durable record of learner progress.

    Every call is one transaction: either all of its rows (progress record,
    quiz response, enrollment) are committed or none are.
    """

    def __init__(self, db: Session):
        self.db = db

    def record_progress(
        self,
        user: User,
        *,
        module_id: int,
        course_id: int,
        section_id: str,
        time_spent: int = 0,
        completed: bool = False,
        quiz_score: int | None = None,
    ) -> ProgressOutcome:
        user_id = user.id

        if self.db.get(Course, course_id) is None:
            raise CourseNotFound(course_id)

        passed = is_passing(section_id, quiz_score) if quiz_score is not None else None
        event = ProgressEvent(
            completed=bool(completed),
            time_spent=int(time_spent or 0),
            quiz_score=quiz_score,
            passed=bool(passed),
        )

        # A unique-constraint hit means a concurrent request created the same
        # progress row or enrollment first; replaying once turns it into an update.
        for attempt in (1, 2):
            try:
                outcome = self._apply(user_id, module_id=module_id, course_id=course_id, section_id=section_id, event=event)
                self.db.commit()
                return outcome
            except IntegrityError as e:
                self.db.rollback()
                if attempt == 2:
                    logger.exception(
                        "progress write conflict persisted user=%s module=%s section=%s",
                        user_id,
                        module_id,
                        section_id,
                    )
                    raise ProgressUpdateFailed("progress write conflict") from e
                logger.info("progress write conflict user=%s section=%s, retrying", user_id, section_id)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.exception(
                    "progress update failed user=%s module=%s course=%s section=%s",
                    user_id,
                    module_id,
                    course_id,
                    section_id,
                )
                raise ProgressUpdateFailed(str(e)) from e

        raise ProgressUpdateFailed("unreachable")

    def _apply(
        self,
        user_id: uuid.UUID,
        *,
        module_id: int,
        course_id: int,
        section_id: str,
        event: ProgressEvent,
    ) -> ProgressOutcome:
        now = utcnow()

        enrollment: Enrollment | None = None
        if event.is_quiz:
            enrollment = self._get_or_create_enrollment(user_id, course_id, now=now)
            self.db.add(
                QuizResponse(
                    user_id=user_id,
                    module_id=module_id,
                    course_id=course_id,
                    quiz_id=section_id,
                    score=int(event.quiz_score),
                    is_correct=bool(event.passed),
                    time_spent=max(0, int(event.time_spent)),
                    answered_at=now,
                )
            )

        row = self.db.scalar(
            select(ModuleProgress).where(
                ModuleProgress.user_id == user_id,
                ModuleProgress.module_id == module_id,
                ModuleProgress.section_id == section_id,
            )
        )
        merged = merge_progress(_state_of(row) if row is not None else None, event, now=now)
        if row is None:
            row = ModuleProgress(user_id=user_id, module_id=module_id, section_id=section_id)
            self.db.add(row)
        row.course_id = course_id
        _apply_state(row, merged)

        if enrollment is not None:
            if event.passed:
                enrollment.progress = min(MAX_ENROLLMENT_PROGRESS, int(enrollment.progress or 0) + 1)
                if enrollment.progress >= MAX_ENROLLMENT_PROGRESS:
                    enrollment.status = EnrollmentStatus.completed
            enrollment.last_accessed_at = now

        self.db.execute(update(User).where(User.id == user_id).values(last_activity_at=now))
        self.db.flush()

        return ProgressOutcome(
            module_id=module_id,
            section_id=section_id,
            completed=merged.completed,
            score=merged.score,
            time_spent=merged.time_spent,
            is_quiz=event.is_quiz,
            passed=bool(event.passed) if event.is_quiz else None,
            enrollment_progress=int(enrollment.progress) if enrollment is not None else None,
        )

    def _get_or_create_enrollment(self, user_id: uuid.UUID, course_id: int, *, now: datetime) -> Enrollment:
        enrollment = self.db.scalar(
            select(Enrollment).where(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
        )
        if enrollment is not None:
            return enrollment

        enrollment = Enrollment(
            user_id=user_id,
            course_id=course_id,
            status=EnrollmentStatus.active,
            progress=0,
            enrolled_at=now,
            last_accessed_at=now,
        )
        self.db.add(enrollment)
        self.db.flush()
        logger.info("auto-enrolled user=%s course=%s on quiz event", user_id, course_id)
        return enrollment

    def list_progress(self, user: User) -> List[ModuleProgress]:
        return list(
            self.db.scalars(
                select(ModuleProgress)
                .where(ModuleProgress.user_id == user.id)
                .order_by(ModuleProgress.module_id, ModuleProgress.section_id)
            ).all()
        )

    def module_rollup(self, user: User, module_id: int) -> Dict[str, Any]:
        """Completed share of the sections recorded so far for one module."""
        rows = self.db.scalars(
            select(ModuleProgress.completed).where(
                ModuleProgress.user_id == user.id,
                ModuleProgress.module_id == module_id,
            )
        ).all()
        total = len(rows)
        done = sum(1 for c in rows if c)
        percent = int(round((done / total) * 100)) if total else 0
        return {"module_id": module_id, "completed_sections": done, "total_sections": total, "progress": percent}
