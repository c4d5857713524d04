from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class EnrollmentPublic(BaseModel):
    id: str
    user_id: str
    course_id: str
    started_at: datetime | None
    completed_at: datetime | None
    progress: int
    current_lesson_id: str | None
    certificate: str | None


class MyEnrollment(EnrollmentPublic):
    course_title: str
    course_type: str
    course_level: str


class ProgressUpdateRequest(BaseModel):
    current_lesson_id: str | None = None


class ProgressSnapshot(BaseModel):
    user_course_id: str
    course_id: str
    progress: int
    lessons_viewed: int
    total_lessons: int
    passed_quizzes: int
    total_quizzes: int
    completed: bool
    completed_at: datetime | None
    certificate: str | None


class ProgressUpdateResponse(BaseModel):
    enrollment: EnrollmentPublic
    progress: ProgressSnapshot | None


class CertificatePublic(BaseModel):
    code: str
    user_id: str
    user_name: str | None = None
    course_id: str
    course_title: str
    completed_at: datetime | None
