from __future__ import annotations

from pydantic import BaseModel, Field

from elearning.models.quiz import QuestionType


class QuizCreateRequest(BaseModel):
    title: str = Field(default="", max_length=300)
    description: str | None = Field(default=None, max_length=5000)
    lesson_id: str | None = None
    passing_score: int | None = Field(default=None, ge=0, le=100)
    time_limit: int | None = Field(default=None, ge=1)
    randomize_questions: bool = False


class QuizPublic(BaseModel):
    id: str
    course_id: str
    lesson_id: str | None
    title: str
    description: str | None
    passing_score: int | None
    time_limit: int | None
    randomize_questions: bool


class OptionCreateRequest(BaseModel):
    text: str = Field(min_length=1)
    is_correct: bool = False
    order: int = 0


class QuestionCreateRequest(BaseModel):
    text: str = Field(min_length=1)
    type: QuestionType = QuestionType.multiple_choice
    points: int = Field(default=1, ge=0)
    order: int = 0
    options: list[OptionCreateRequest] = Field(default_factory=list)


class OptionPublic(BaseModel):
    id: str
    question_id: str
    text: str
    order: int
    # Ground truth, only present for admins or after the attempt is completed.
    is_correct: bool | None = None


class QuestionPublic(BaseModel):
    id: str
    quiz_id: str
    text: str
    type: str
    points: int
    order: int
    options: list[OptionPublic]


class QuizDetailResponse(BaseModel):
    quiz: QuizPublic
    questions: list[QuestionPublic]
