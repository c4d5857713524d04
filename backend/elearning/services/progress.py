from __future__ import annotations

import json
import logging
import secrets
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from elearning.core.config import settings
from elearning.models.attempt import QuizAttempt
from elearning.models.audit import LearningEvent, LearningEventType
from elearning.models.course import Lesson
from elearning.models.enrollment import UserCourse
from elearning.models.quiz import Quiz
from elearning.services.scoring import compute_progress, lessons_viewed


logger = logging.getLogger("elearning.progress")


def issue_certificate_code() -> str:
    return f"{settings.certificate_prefix}-{secrets.token_hex(6).upper()}"


class ProgressService:
    """Derives UserCourse.progress from lesson position and passed quizzes.

    The value is recomputed from scratch on every call, so it can be re-run
    after any mutation (or a failed earlier run) and converge on the same
    result. The first time progress reaches 100 the enrollment is marked
    completed and a certificate code is issued; neither is ever undone.
    """

    def __init__(self, db: Session):
        self.db = db

    def _measure(self, uc: UserCourse) -> dict[str, int]:
        lesson_ids = list(
            self.db.scalars(select(Lesson.id).where(Lesson.course_id == uc.course_id).order_by(Lesson.order))
        )
        quiz_ids = list(self.db.scalars(select(Quiz.id).where(Quiz.course_id == uc.course_id)))

        passed_quiz_ids: set[uuid.UUID] = set()
        if quiz_ids:
            passed_quiz_ids = set(
                self.db.scalars(
                    select(QuizAttempt.quiz_id)
                    .where(
                        QuizAttempt.user_id == uc.user_id,
                        QuizAttempt.quiz_id.in_(quiz_ids),
                        QuizAttempt.passed == True,  # noqa: E712
                    )
                    .distinct()
                )
            )

        viewed = lessons_viewed(lesson_ids, uc.current_lesson_id)
        return {
            "lessons_viewed": viewed,
            "total_lessons": len(lesson_ids),
            "passed_quizzes": len(passed_quiz_ids),
            "total_quizzes": len(quiz_ids),
            "progress": compute_progress(
                lessons_viewed=viewed,
                passed_quizzes=len(passed_quiz_ids),
                total_lessons=len(lesson_ids),
                total_quizzes=len(quiz_ids),
            ),
        }

    def snapshot(self, uc: UserCourse) -> dict[str, Any]:
        """Read-only view of the derived progress; does not persist anything."""
        m = self._measure(uc)
        return self._snapshot_dict(uc, m)

    def _snapshot_dict(self, uc: UserCourse, m: dict[str, int]) -> dict[str, Any]:
        return {
            "user_course_id": str(uc.id),
            "course_id": str(uc.course_id),
            "progress": m["progress"],
            "lessons_viewed": m["lessons_viewed"],
            "total_lessons": m["total_lessons"],
            "passed_quizzes": m["passed_quizzes"],
            "total_quizzes": m["total_quizzes"],
            "completed": uc.completed_at is not None,
            "completed_at": uc.completed_at,
            "certificate": uc.certificate,
        }

    def recompute(self, uc: UserCourse) -> dict[str, Any]:
        m = self._measure(uc)
        uc.progress = m["progress"]

        if uc.progress >= 100 and uc.completed_at is None:
            uc.completed_at = datetime.now(timezone.utc)
            if not uc.certificate:
                uc.certificate = issue_certificate_code()
            self.db.add(
                LearningEvent(
                    user_id=uc.user_id,
                    type=LearningEventType.course_completed,
                    ref_id=uc.course_id,
                    meta=json.dumps({"user_course_id": str(uc.id), "certificate": uc.certificate}, ensure_ascii=False),
                )
            )
            logger.info("course completed user_course_id=%s certificate=%s", uc.id, uc.certificate)

        self.db.commit()
        self.db.refresh(uc)
        return self._snapshot_dict(uc, m)

    def recompute_by_id(self, user_course_id: uuid.UUID) -> dict[str, Any] | None:
        uc = self.db.get(UserCourse, user_course_id)
        if uc is None:
            return None
        return self.recompute(uc)
