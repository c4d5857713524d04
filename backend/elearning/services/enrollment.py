from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from elearning.core.access import AccessPolicy
from elearning.core.errors import AlreadyEnrolled, Forbidden, ValidationError
from elearning.models.audit import LearningEvent, LearningEventType
from elearning.models.course import Course, Lesson
from elearning.models.enrollment import UserCourse
from elearning.services.lookups import get_or_404, parse_uuid


logger = logging.getLogger("elearning.enrollment")


def enrollment_view(uc: UserCourse) -> dict[str, Any]:
    return {
        "id": str(uc.id),
        "user_id": str(uc.user_id),
        "course_id": str(uc.course_id),
        "started_at": uc.started_at,
        "completed_at": uc.completed_at,
        "progress": int(uc.progress or 0),
        "current_lesson_id": str(uc.current_lesson_id) if uc.current_lesson_id else None,
        "certificate": uc.certificate,
    }


class EnrollmentService:
    def __init__(self, db: Session, policy: AccessPolicy):
        self.db = db
        self.policy = policy

    def _existing(self, course_id) -> UserCourse | None:
        return self.policy.enrollment_for(course_id)

    def _already_enrolled(self, existing: UserCourse | None) -> AlreadyEnrolled:
        return AlreadyEnrolled(extra={"enrollment": enrollment_view(existing)} if existing else None)

    def enroll(self, course_id) -> UserCourse:
        user = self.policy.user
        course = get_or_404(self.db, Course, course_id, what="course")
        if not self.policy.can_see_course(course):
            raise Forbidden("course is not available for enrollment")

        existing = self._existing(course.id)
        if existing is not None:
            raise self._already_enrolled(existing)

        first_lesson_id = self.db.scalar(
            select(Lesson.id).where(Lesson.course_id == course.id).order_by(Lesson.order.asc()).limit(1)
        )
        uc = UserCourse(
            user_id=user.id,
            course_id=course.id,
            progress=0,
            current_lesson_id=first_lesson_id,
            started_at=datetime.now(timezone.utc),
        )
        self.db.add(uc)
        try:
            self.db.flush()
        except IntegrityError as e:
            # Lost an insert race against a concurrent enroll for the same pair.
            self.db.rollback()
            raise self._already_enrolled(self._existing(course.id)) from e

        self.db.add(LearningEvent(user_id=user.id, type=LearningEventType.course_enrolled, ref_id=course.id))
        self.db.commit()
        self.db.refresh(uc)
        logger.info("enrolled user_id=%s course_id=%s user_course_id=%s", user.id, course.id, uc.id)
        return uc

    def get(self, user_course_id) -> UserCourse:
        uc = get_or_404(self.db, UserCourse, user_course_id, what="enrollment")
        course = self.db.get(Course, uc.course_id)
        company_id = course.company_id if course is not None else None
        self.policy.require_owner_or_admin(uc.user_id, company_id, "no permission for this enrollment")
        return uc

    def get_owned(self, user_course_id) -> UserCourse:
        uc = get_or_404(self.db, UserCourse, user_course_id, what="enrollment")
        self.policy.require_owner(uc.user_id, "no permission to modify this enrollment")
        return uc

    def advance_lesson(self, user_course_id, lesson_id) -> UserCourse:
        """Move the lesson pointer. Progress is left to the aggregator."""
        uc = self.get_owned(user_course_id)
        lesson = self.db.get(Lesson, parse_uuid(lesson_id, field="current_lesson_id"))
        if lesson is None or lesson.course_id != uc.course_id:
            raise ValidationError("lesson does not belong to this course", field="current_lesson_id")

        uc.current_lesson_id = lesson.id
        self.db.add(
            LearningEvent(
                user_id=uc.user_id,
                type=LearningEventType.lesson_advanced,
                ref_id=lesson.id,
                meta=json.dumps({"user_course_id": str(uc.id), "order": int(lesson.order)}, ensure_ascii=False),
            )
        )
        self.db.commit()
        self.db.refresh(uc)
        return uc

    def list_mine(self) -> list[dict[str, Any]]:
        rows = self.db.execute(
            select(UserCourse, Course)
            .join(Course, Course.id == UserCourse.course_id)
            .where(UserCourse.user_id == self.policy.user.id)
            .order_by(UserCourse.started_at.desc())
        ).all()
        return [
            {
                **enrollment_view(uc),
                "course_title": c.title,
                "course_type": c.type.value,
                "course_level": c.level.value,
            }
            for uc, c in rows
        ]

    def list_for_course(self, course_id) -> list[UserCourse]:
        course = get_or_404(self.db, Course, course_id, what="course")
        self.policy.require_admin_of(course.company_id, "no permission to view enrollments of this course")
        return list(
            self.db.scalars(
                select(UserCourse).where(UserCourse.course_id == course.id).order_by(UserCourse.started_at.desc())
            )
        )
