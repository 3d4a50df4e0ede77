from cryptoacademy.models.user import User, UserRole
from cryptoacademy.models.course import Course, Enrollment, EnrollmentStatus
from cryptoacademy.models.progress import ModuleProgress, QuizResponse
from cryptoacademy.models.achievement import Achievement, UserAchievement
from cryptoacademy.models.quiz_bank import QuizAnswer, QuizQuestion
from cryptoacademy.models.security_audit import SecurityAuditEvent

__all__ = [
    "User",
    "UserRole",
    "Course",
    "Enrollment",
    "EnrollmentStatus",
    "ModuleProgress",
    "QuizResponse",
    "Achievement",
    "UserAchievement",
    "QuizQuestion",
    "QuizAnswer",
    "SecurityAuditEvent",
]
