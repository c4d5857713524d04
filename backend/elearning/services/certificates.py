from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from elearning.core.access import AccessPolicy
from elearning.core.errors import NotFound
from elearning.models.course import Course
from elearning.models.enrollment import UserCourse
from elearning.models.user import User


def certificate_view(uc: UserCourse, course: Course, user: User | None = None) -> dict[str, Any]:
    return {
        "code": uc.certificate,
        "user_id": str(uc.user_id),
        "user_name": user.name if user is not None else None,
        "course_id": str(course.id),
        "course_title": course.title,
        "completed_at": uc.completed_at,
    }


class CertificateService:
    def __init__(self, db: Session, policy: AccessPolicy):
        self.db = db
        self.policy = policy

    def list_mine(self) -> list[dict[str, Any]]:
        rows = self.db.execute(
            select(UserCourse, Course)
            .join(Course, Course.id == UserCourse.course_id)
            .where(UserCourse.user_id == self.policy.user.id, UserCourse.certificate.is_not(None))
            .order_by(UserCourse.completed_at.desc())
        ).all()
        return [certificate_view(uc, c, self.policy.user) for uc, c in rows]

    def get(self, code: str) -> dict[str, Any]:
        """Verification lookup by code. Any authenticated user may verify a certificate."""
        code = str(code or "").strip().upper()
        row = self.db.execute(
            select(UserCourse, Course, User)
            .join(Course, Course.id == UserCourse.course_id)
            .join(User, User.id == UserCourse.user_id)
            .where(UserCourse.certificate == code)
        ).first()
        if row is None:
            raise NotFound("certificate not found")
        uc, course, user = row
        return certificate_view(uc, course, user)
