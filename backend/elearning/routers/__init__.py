from elearning.routers import attempts, auth, certificates, courses, health, lessons, questions, quizzes, user_courses

__all__ = [
    "attempts",
    "auth",
    "certificates",
    "courses",
    "health",
    "lessons",
    "questions",
    "quizzes",
    "user_courses",
]
