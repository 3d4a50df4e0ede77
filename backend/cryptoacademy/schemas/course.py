from __future__ import annotations

from pydantic import BaseModel


class CoursePublic(BaseModel):
    id: int
    slug: str
    title: str
    description: str | None
    isActive: bool


class CourseCreateRequest(BaseModel):
    slug: str
    title: str
    description: str | None = None


class EnrollmentCreateRequest(BaseModel):
    courseId: int | str | None = None


class EnrollmentPublic(BaseModel):
    id: str
    userId: str
    courseId: int
    status: str
    progress: int
    enrolledAt: str | None
    lastAccessedAt: str | None
    course: CoursePublic | None = None
