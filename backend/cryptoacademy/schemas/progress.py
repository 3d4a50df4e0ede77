from __future__ import annotations

from pydantic import BaseModel

# Wire format keeps the camelCase keys the web client sends and reads.


class ProgressUpdateRequest(BaseModel):
    # Identifiers arrive as numbers or numeric strings; the router rejects anything else with 400.
    moduleId: int | str | None = None
    courseId: int | str | None = None
    sectionId: str | None = None
    timeSpent: int | None = None
    completed: bool | None = None
    quizScore: float | None = None


class ProgressUpdateResponse(BaseModel):
    success: bool
    message: str | None = None
    completed: bool | None = None
    score: int | None = None
    timeSpent: int | None = None
    passed: bool | None = None
    enrollmentProgress: int | None = None


class ProgressRecordPublic(BaseModel):
    moduleId: int
    courseId: int | None
    sectionId: str
    completed: bool
    score: int | None
    timeSpent: int
    lastAccessed: str | None
    completedAt: str | None


class LegacyProgressUpdateRequest(BaseModel):
    moduleId: int | str | None = None
    courseId: int | str | None = None
    sectionId: str | None = None
    completed: bool | None = None
    timeSpent: int | None = None


class ModuleRollupResponse(BaseModel):
    success: bool
    progress: int
    completedSections: int
    totalSections: int
    message: str | None = None
