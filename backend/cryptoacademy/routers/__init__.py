from cryptoacademy.routers import achievements, auth, courses, health, learning_path, progress, quizzes, user_metrics

__all__ = [
    "achievements",
    "auth",
    "courses",
    "health",
    "learning_path",
    "progress",
    "quizzes",
    "user_metrics",
]
