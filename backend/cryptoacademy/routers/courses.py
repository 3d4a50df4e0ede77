from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cryptoacademy.core.ids import int_id
from cryptoacademy.core.rate_limit import rate_limit
from cryptoacademy.core.security import get_current_user, require_roles
from cryptoacademy.db.session import get_db
from cryptoacademy.models.course import Course, Enrollment
from cryptoacademy.models.user import User, UserRole
from cryptoacademy.schemas.course import CourseCreateRequest, CoursePublic, EnrollmentCreateRequest, EnrollmentPublic
from cryptoacademy.services.courses import AlreadyEnrolled, CourseNotFound, CourseService, CourseSlugTaken

router = APIRouter(prefix="/api", tags=["courses"])


def _course_public(c: Course) -> dict:
    return {
        "id": int(c.id),
        "slug": c.slug,
        "title": c.title,
        "description": c.description,
        "isActive": bool(c.is_active),
    }


def _enrollment_public(e: Enrollment) -> dict:
    return {
        "id": str(e.id),
        "userId": str(e.user_id),
        "courseId": int(e.course_id),
        "status": e.status.value,
        "progress": int(e.progress or 0),
        "enrolledAt": e.enrolled_at.isoformat() if e.enrolled_at else None,
        "lastAccessedAt": e.last_accessed_at.isoformat() if e.last_accessed_at else None,
        "course": _course_public(e.course) if e.course is not None else None,
    }


@router.get("/courses", response_model=list[CoursePublic])
def list_courses(db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return [_course_public(c) for c in CourseService(db).list_active()]


@router.post("/courses", response_model=CoursePublic, status_code=201)
def create_course(
    body: CourseCreateRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(UserRole.admin)),
):
    if not body.slug.strip() or not body.title.strip():
        raise HTTPException(status_code=400, detail="slug and title are required")
    try:
        course = CourseService(db).create(slug=body.slug, title=body.title, description=body.description)
    except CourseSlugTaken as e:
        raise HTTPException(status_code=409, detail="Course slug already exists") from e
    return _course_public(course)


@router.get("/enrollments", response_model=list[EnrollmentPublic])
def list_enrollments(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return [_enrollment_public(e) for e in CourseService(db).list_enrollments(user)]


@router.post("/enrollments", response_model=EnrollmentPublic, status_code=201)
def create_enrollment(
    body: EnrollmentCreateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _: object = rate_limit(key_prefix="enroll", limit=30, window_seconds=60),
):
    if body.courseId is None or body.courseId == "":
        raise HTTPException(status_code=400, detail="Course ID is required")
    course_id = int_id(body.courseId, field="courseId")

    try:
        enrollment = CourseService(db).enroll(user, course_id)
    except CourseNotFound as e:
        raise HTTPException(status_code=404, detail="Course not found") from e
    except AlreadyEnrolled as e:
        raise HTTPException(status_code=400, detail="Already enrolled in this course") from e

    return _enrollment_public(enrollment)
