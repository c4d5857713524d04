from elearning.models.user import User, UserRole
from elearning.models.course import Course, CourseLevel, CourseType, Lesson
from elearning.models.quiz import Option, Question, QuestionType, Quiz
from elearning.models.enrollment import UserCourse
from elearning.models.attempt import QuizAttempt, UserAnswer
from elearning.models.audit import LearningEvent, LearningEventType, SecurityAuditEvent

__all__ = [
    "User",
    "UserRole",
    "Course",
    "CourseLevel",
    "CourseType",
    "Lesson",
    "Quiz",
    "Question",
    "QuestionType",
    "Option",
    "UserCourse",
    "QuizAttempt",
    "UserAnswer",
    "LearningEvent",
    "LearningEventType",
    "SecurityAuditEvent",
]
