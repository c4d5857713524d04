from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from elearning.schemas.enrollment import ProgressSnapshot
from elearning.schemas.quiz import QuestionPublic, QuizPublic


class AttemptPublic(BaseModel):
    id: str
    user_id: str
    quiz_id: str
    user_course_id: str | None
    started_at: datetime | None
    completed_at: datetime | None
    score: int | None
    passed: bool | None
    time_spent: int | None


class AnswerSubmitRequest(BaseModel):
    question_id: str
    option_id: str | None = None
    text: str | None = None


class AnswerPublic(BaseModel):
    id: str
    quiz_attempt_id: str
    question_id: str
    option_id: str | None
    text: str | None


class AnswerResult(AnswerPublic):
    is_correct: bool


class AttemptCompleteResponse(BaseModel):
    attempt: AttemptPublic
    score: int
    passed: bool
    correct_answers: int
    total_questions: int
    earned_points: int
    total_points: int
    time_spent: int
    progress: ProgressSnapshot | None = None


class QuestionResult(QuestionPublic):
    user_answer: AnswerResult | None


class AttemptResultsResponse(BaseModel):
    attempt: AttemptPublic
    quiz: QuizPublic
    questions: list[QuestionResult]
