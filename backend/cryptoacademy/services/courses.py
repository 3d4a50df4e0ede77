from __future__ import annotations

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cryptoacademy.models._time import utcnow
from cryptoacademy.models.course import Course, Enrollment, EnrollmentStatus
from cryptoacademy.models.user import User

logger = logging.getLogger(__name__)


class CourseNotFound(Exception):
    pass


class AlreadyEnrolled(Exception):
    pass


class CourseSlugTaken(Exception):
    pass


class CourseService:
    def __init__(self, db: Session):
        self.db = db

    def list_active(self) -> List[Course]:
        return list(self.db.scalars(select(Course).where(Course.is_active == True).order_by(Course.id)).all())  # noqa: E712

    def create(self, *, slug: str, title: str, description: str | None = None) -> Course:
        course = Course(slug=slug.strip(), title=title.strip(), description=description, is_active=True)
        self.db.add(course)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise CourseSlugTaken(slug) from e
        self.db.refresh(course)
        return course

    def list_enrollments(self, user: User) -> List[Enrollment]:
        return list(
            self.db.scalars(
                select(Enrollment).where(Enrollment.user_id == user.id).order_by(Enrollment.enrolled_at)
            ).all()
        )

    def enroll(self, user: User, course_id: int) -> Enrollment:
        """Explicit enroll action; enrolling twice in one course is rejected."""
        course = self.db.get(Course, course_id)
        if course is None:
            raise CourseNotFound(course_id)

        existing = self.db.scalar(
            select(Enrollment.id).where(Enrollment.user_id == user.id, Enrollment.course_id == course_id)
        )
        if existing is not None:
            raise AlreadyEnrolled(course_id)

        now = utcnow()
        enrollment = Enrollment(
            user_id=user.id,
            course_id=course_id,
            status=EnrollmentStatus.active,
            progress=0,
            enrolled_at=now,
            last_accessed_at=now,
        )
        self.db.add(enrollment)
        try:
            self.db.commit()
        except IntegrityError as e:
            # Lost the race against a concurrent enroll or an auto-enrolling quiz event.
            self.db.rollback()
            raise AlreadyEnrolled(course_id) from e

        self.db.refresh(enrollment)
        logger.info("user=%s enrolled in course=%s", user.id, course_id)
        return enrollment
