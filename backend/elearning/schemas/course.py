from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from elearning.models.course import CourseLevel, CourseType
from elearning.schemas.quiz import QuizPublic


class CourseCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: str | None = Field(default=None, max_length=5000)
    type: CourseType
    level: CourseLevel = CourseLevel.beginner
    duration: int = Field(default=0, ge=0)
    is_published: bool = False
    required_score: int = Field(default=70, ge=0, le=100)


class CourseUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = Field(default=None, max_length=5000)
    type: CourseType | None = None
    level: CourseLevel | None = None
    duration: int | None = Field(default=None, ge=0)
    is_published: bool | None = None
    required_score: int | None = Field(default=None, ge=0, le=100)


class CoursePublic(BaseModel):
    id: str
    company_id: str | None
    title: str
    description: str | None
    type: str
    level: str
    duration: int
    is_published: bool
    required_score: int
    created_at: datetime | None = None
    enrolled: bool | None = None


class LessonCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    content: str = ""
    video_url: str | None = Field(default=None, max_length=1000)
    order: int = Field(ge=0)
    duration: int = Field(default=0, ge=0)


class LessonUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    content: str | None = None
    video_url: str | None = Field(default=None, max_length=1000)
    order: int | None = Field(default=None, ge=0)
    duration: int | None = Field(default=None, ge=0)


class LessonPublic(BaseModel):
    id: str
    course_id: str
    title: str
    content: str
    video_url: str | None
    order: int
    duration: int


class CourseDetailResponse(BaseModel):
    course: CoursePublic
    lessons: list[LessonPublic]
    quizzes: list[QuizPublic]


class LessonDetailResponse(BaseModel):
    lesson: LessonPublic
    quiz: QuizPublic | None
