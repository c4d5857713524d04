from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from elearning.core.access import AccessPolicy
from elearning.core.config import settings
from elearning.core.errors import AttemptAlreadyCompleted, NotFound, ValidationError
from elearning.models.attempt import QuizAttempt, UserAnswer
from elearning.models.audit import LearningEvent, LearningEventType
from elearning.models.course import Course
from elearning.models.quiz import Option, Question, Quiz
from elearning.services.catalog import CatalogService, question_view, quiz_view
from elearning.services.lookups import get_or_404, parse_uuid
from elearning.services.progress import ProgressService
from elearning.services.scoring import passing_threshold, score_attempt


logger = logging.getLogger("elearning.assessment")


def _as_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def elapsed_seconds(started_at: datetime | None, finished_at: datetime) -> int:
    if started_at is None:
        return 0
    delta = _as_naive_utc(finished_at) - _as_naive_utc(started_at)
    return max(0, int(delta.total_seconds()))


def attempt_view(a: QuizAttempt) -> dict[str, Any]:
    return {
        "id": str(a.id),
        "user_id": str(a.user_id),
        "quiz_id": str(a.quiz_id),
        "user_course_id": str(a.user_course_id) if a.user_course_id else None,
        "started_at": a.started_at,
        "completed_at": a.completed_at,
        "score": a.score,
        "passed": a.passed,
        "time_spent": a.time_spent,
    }


def answer_view(ans: UserAnswer, *, reveal: bool = False) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": str(ans.id),
        "quiz_attempt_id": str(ans.quiz_attempt_id),
        "question_id": str(ans.question_id),
        "option_id": str(ans.option_id) if ans.option_id else None,
        "text": ans.text,
    }
    # Grading is exposed only for completed attempts.
    if reveal:
        data["is_correct"] = bool(ans.is_correct)
    return data


class AssessmentService:
    """Quiz attempt lifecycle: start, answer, finalize, review.

    An attempt accepts answers until it is finalized exactly once. Both the
    answer and the finalize paths lock the attempt row, so a submission that
    queues behind a finalize sees ``completed_at`` and is rejected.
    """

    def __init__(self, db: Session, policy: AccessPolicy):
        self.db = db
        self.policy = policy

    def _lock_attempt(self, attempt_id) -> QuizAttempt:
        aid = parse_uuid(attempt_id, field="attempt_id")
        attempt = self.db.scalar(select(QuizAttempt).where(QuizAttempt.id == aid).with_for_update())
        if attempt is None:
            raise NotFound("quiz attempt not found")
        return attempt

    def _open_owned_attempt(self, attempt_id) -> QuizAttempt:
        attempt = self._lock_attempt(attempt_id)
        self.policy.require_owner(attempt.user_id, "no permission for this quiz attempt")
        if attempt.completed_at is not None:
            raise AttemptAlreadyCompleted()
        return attempt

    def start_attempt(self, quiz_id) -> QuizAttempt:
        quiz = get_or_404(self.db, Quiz, quiz_id, what="quiz")
        enrollment = self.policy.require_enrolled(quiz.course_id)

        attempt = QuizAttempt(
            user_id=self.policy.user.id,
            quiz_id=quiz.id,
            user_course_id=enrollment.id,
            started_at=datetime.now(timezone.utc),
        )
        self.db.add(attempt)
        self.db.add(LearningEvent(user_id=self.policy.user.id, type=LearningEventType.quiz_started, ref_id=quiz.id))
        self.db.commit()
        self.db.refresh(attempt)
        return attempt

    def submit_answer(self, attempt_id, *, question_id, option_id=None, text: str | None = None) -> UserAnswer:
        attempt = self._open_owned_attempt(attempt_id)

        question = self.db.get(Question, parse_uuid(question_id, field="question_id"))
        if question is None or question.quiz_id != attempt.quiz_id:
            raise ValidationError("question does not belong to this quiz", field="question_id")

        option: Option | None = None
        if option_id:
            option = self.db.get(Option, parse_uuid(option_id, field="option_id"))
            if option is None or option.question_id != question.id:
                raise ValidationError("option does not belong to this question", field="option_id")

        text = text if text and text.strip() else None
        if option is None and text is None:
            raise ValidationError("option_id or text is required", field="option_id")

        # Free-text answers are not auto-graded.
        is_correct = bool(option.is_correct) if option is not None else False

        # One answer per question: a resubmission replaces the previous one.
        answer = self.db.scalar(
            select(UserAnswer).where(UserAnswer.quiz_attempt_id == attempt.id, UserAnswer.question_id == question.id)
        )
        if answer is None:
            answer = UserAnswer(quiz_attempt_id=attempt.id, question_id=question.id)
            self.db.add(answer)
        answer.option_id = option.id if option is not None else None
        answer.text = text
        answer.is_correct = is_correct
        answer.answered_at = datetime.now(timezone.utc)

        self.db.commit()
        self.db.refresh(answer)
        return answer

    def finalize_attempt(self, attempt_id) -> dict[str, Any]:
        attempt = self._open_owned_attempt(attempt_id)
        quiz = self.db.get(Quiz, attempt.quiz_id)
        if quiz is None:
            raise NotFound("quiz not found")
        course = self.db.get(Course, quiz.course_id)

        questions = list(self.db.scalars(select(Question).where(Question.quiz_id == quiz.id)))
        answers = list(self.db.scalars(select(UserAnswer).where(UserAnswer.quiz_attempt_id == attempt.id)))
        result = score_attempt(questions, answers)

        threshold = passing_threshold(
            quiz_passing_score=quiz.passing_score,
            course_required_score=course.required_score if course is not None else None,
            default=settings.default_passing_score,
        )
        score = result.score
        passed = score >= threshold

        now = datetime.now(timezone.utc)
        time_spent = elapsed_seconds(attempt.started_at, now)
        attempt.completed_at = now
        attempt.score = score
        attempt.passed = passed
        attempt.time_spent = time_spent

        self.db.add(
            LearningEvent(
                user_id=attempt.user_id,
                type=LearningEventType.quiz_completed,
                ref_id=quiz.id,
                meta=json.dumps({"attempt_id": str(attempt.id), "score": score, "passed": passed}, ensure_ascii=False),
            )
        )
        self.db.commit()
        self.db.refresh(attempt)
        logger.info("quiz attempt finalized attempt_id=%s score=%s passed=%s", attempt.id, score, passed)

        progress = None
        if attempt.user_course_id is not None:
            progress = self._recompute_progress(attempt.user_course_id)

        return {
            "attempt": attempt_view(attempt),
            "score": score,
            "passed": passed,
            "correct_answers": result.correct_answers,
            "total_questions": result.total_questions,
            "earned_points": result.earned_points,
            "total_points": result.total_points,
            "time_spent": time_spent,
            "progress": progress,
        }

    def _recompute_progress(self, user_course_id: uuid.UUID) -> dict[str, Any] | None:
        # Best effort: the finalized attempt is already committed and stands on its own.
        try:
            return ProgressService(self.db).recompute_by_id(user_course_id)
        except Exception:
            self.db.rollback()
            logger.exception("progress recompute failed user_course_id=%s", user_course_id)
            return None

    def results(self, attempt_id) -> dict[str, Any]:
        attempt = get_or_404(self.db, QuizAttempt, attempt_id, what="attempt")
        quiz = get_or_404(self.db, Quiz, attempt.quiz_id, what="quiz")
        course = self.db.get(Course, quiz.course_id)
        self.policy.require_owner_or_admin(
            attempt.user_id,
            course.company_id if course is not None else None,
            "no permission to view these results",
        )
        if attempt.completed_at is None:
            raise ValidationError("quiz attempt has not been completed yet")

        answers = {
            a.question_id: a
            for a in self.db.scalars(select(UserAnswer).where(UserAnswer.quiz_attempt_id == attempt.id))
        }
        questions = []
        for q, options in CatalogService(self.db, self.policy).questions_with_options(quiz.id):
            item = question_view(q, options, reveal=True)
            ans = answers.get(q.id)
            item["user_answer"] = answer_view(ans, reveal=True) if ans is not None else None
            questions.append(item)

        return {"attempt": attempt_view(attempt), "quiz": quiz_view(quiz), "questions": questions}

    def list_my_attempts(self, quiz_id) -> list[QuizAttempt]:
        quiz = get_or_404(self.db, Quiz, quiz_id, what="quiz")
        return list(
            self.db.scalars(
                select(QuizAttempt)
                .where(QuizAttempt.quiz_id == quiz.id, QuizAttempt.user_id == self.policy.user.id)
                .order_by(QuizAttempt.started_at.desc())
            )
        )
