from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cryptoacademy.core.ids import int_id, time_delta
from cryptoacademy.core.rate_limit import rate_limit
from cryptoacademy.core.security import get_current_user
from cryptoacademy.db.session import get_db
from cryptoacademy.models.user import User
from cryptoacademy.schemas.progress import LegacyProgressUpdateRequest, ModuleRollupResponse
from cryptoacademy.services.courses import CourseNotFound
from cryptoacademy.services.ledger import ProgressLedger, ProgressUpdateFailed
from cryptoacademy.services.recommendations import RecommendationService

router = APIRouter(prefix="/api/progress", tags=["progress"])


@router.post("/update", response_model=ModuleRollupResponse)
def update_progress(
    body: LegacyProgressUpdateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _: object = rate_limit(key_prefix="progress_update_legacy", limit=120, window_seconds=60),
):
    """Older topic-page endpoint: records a non-quiz event and reports the module rollup."""
    module_id = int_id(body.moduleId, field="moduleId")
    course_id = int_id(body.courseId, field="courseId")
    section_id = str(body.sectionId or "").strip()
    if not section_id or len(section_id) > 200:
        raise HTTPException(status_code=400, detail="invalid sectionId")
    time_spent = time_delta(body.timeSpent)

    ledger = ProgressLedger(db)
    try:
        ledger.record_progress(
            user,
            module_id=module_id,
            course_id=course_id,
            section_id=section_id,
            time_spent=time_spent,
            completed=bool(body.completed),
        )
    except CourseNotFound as e:
        raise HTTPException(status_code=404, detail="Course not found") from e
    except ProgressUpdateFailed as e:
        raise HTTPException(
            status_code=500,
            detail={"error_code": "progress_update_failed", "error_message": "Failed to update progress"},
        ) from e

    RecommendationService(db).invalidate(user)

    rollup = ledger.module_rollup(user, module_id)
    return {
        "success": True,
        "progress": rollup["progress"],
        "completedSections": rollup["completed_sections"],
        "totalSections": rollup["total_sections"],
        "message": "Progress updated successfully",
    }
