from __future__ import annotations

import math

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cryptoacademy.core.ids import int_id, time_delta
from cryptoacademy.core.rate_limit import rate_limit
from cryptoacademy.core.security import get_current_user
from cryptoacademy.db.session import get_db
from cryptoacademy.models.user import User
from cryptoacademy.schemas.learning_path import LearningPathResponse
from cryptoacademy.schemas.progress import ProgressRecordPublic, ProgressUpdateRequest, ProgressUpdateResponse
from cryptoacademy.services.courses import CourseNotFound
from cryptoacademy.services.ledger import ProgressLedger, ProgressUpdateFailed
from cryptoacademy.services.recommendations import RecommendationService

router = APIRouter(prefix="/api/learning-path", tags=["learning-path"])

MAX_SECTION_ID_LENGTH = 200


def _section_id(value: str | None) -> str:
    sid = str(value or "").strip()
    if not sid or len(sid) > MAX_SECTION_ID_LENGTH:
        raise HTTPException(status_code=400, detail="invalid sectionId")
    return sid


def _quiz_score(value: float | None) -> int | None:
    if value is None:
        return None
    if not math.isfinite(value) or value < 0 or value > 100:
        raise HTTPException(status_code=400, detail="invalid quizScore")
    # rounded once here so the stored score and the pass decision agree
    return int(round(value))


def _failed() -> HTTPException:
    # the underlying database error is logged by the ledger and never echoed back
    return HTTPException(
        status_code=500,
        detail={"error_code": "progress_update_failed", "error_message": "Failed to update progress"},
    )


@router.post("/progress", response_model=ProgressUpdateResponse)
def record_progress(
    body: ProgressUpdateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _: object = rate_limit(key_prefix="progress_update", limit=120, window_seconds=60),
):
    module_id = int_id(body.moduleId, field="moduleId")
    course_id = int_id(body.courseId, field="courseId")
    section_id = _section_id(body.sectionId)
    quiz_score = _quiz_score(body.quizScore)

    time_spent = time_delta(body.timeSpent)

    try:
        outcome = ProgressLedger(db).record_progress(
            user,
            module_id=module_id,
            course_id=course_id,
            section_id=section_id,
            time_spent=time_spent,
            completed=bool(body.completed),
            quiz_score=quiz_score,
        )
    except CourseNotFound as e:
        raise HTTPException(status_code=404, detail="Course not found") from e
    except ProgressUpdateFailed as e:
        raise _failed() from e

    RecommendationService(db).invalidate(user)

    if outcome.is_quiz:
        message = "Quiz passed" if outcome.passed else "Quiz recorded"
    else:
        message = "Progress updated successfully"

    return {
        "success": True,
        "message": message,
        "completed": outcome.completed,
        "score": outcome.score,
        "timeSpent": outcome.time_spent,
        "passed": outcome.passed,
        "enrollmentProgress": outcome.enrollment_progress,
    }


@router.get("/progress", response_model=list[ProgressRecordPublic])
def list_progress(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    rows = ProgressLedger(db).list_progress(user)
    return [
        {
            "moduleId": int(r.module_id),
            "courseId": int(r.course_id) if r.course_id is not None else None,
            "sectionId": r.section_id,
            "completed": bool(r.completed),
            "score": r.score,
            "timeSpent": int(r.time_spent or 0),
            "lastAccessed": r.last_accessed.isoformat() if r.last_accessed else None,
            "completedAt": r.completed_at.isoformat() if r.completed_at else None,
        }
        for r in rows
    ]


@router.get("/recommendations", response_model=LearningPathResponse)
def recommendations(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return RecommendationService(db).get(user)
