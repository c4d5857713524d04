from __future__ import annotations

import uuid

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from elearning.core.errors import Forbidden, NotEnrolled
from elearning.core.security import get_current_user
from elearning.db.session import get_db
from elearning.models.course import Course
from elearning.models.enrollment import UserCourse
from elearning.models.user import User, UserRole


_UNSET = object()


class AccessPolicy:
    """Role, tenant and ownership checks for a single caller.

    Every service operation asks the policy instead of inspecting ``user.role``
    itself. A check is parameterized by the row owner, the owning company and
    an optional required role:

    - admins act on rows of their own company (a company-less admin manages
      company-less rows only);
    - everyone acts on rows they own;
    - learners read catalog entries of courses they are enrolled in.
    """

    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user

    @property
    def is_admin(self) -> bool:
        return self.user.role == UserRole.admin

    def owns(self, owner_id: uuid.UUID | None) -> bool:
        return owner_id is not None and owner_id == self.user.id

    def administers(self, company_id: uuid.UUID | None) -> bool:
        return self.is_admin and company_id == self.user.company_id

    def allows(self, *, owner_id=_UNSET, company_id=_UNSET, role: UserRole | None = None) -> bool:
        if role is not None and self.user.role != role:
            return False
        if owner_id is not _UNSET and self.owns(owner_id):
            return True
        if company_id is not _UNSET and self.administers(company_id):
            return True
        return owner_id is _UNSET and company_id is _UNSET

    def require(self, message: str = "forbidden", **check) -> None:
        if not self.allows(**check):
            raise Forbidden(message)

    def require_owner(self, owner_id: uuid.UUID | None, message: str = "forbidden") -> None:
        self.require(message, owner_id=owner_id)

    def require_admin_of(self, company_id: uuid.UUID | None, message: str = "forbidden") -> None:
        self.require(message, company_id=company_id, role=UserRole.admin)

    def require_owner_or_admin(
        self, owner_id: uuid.UUID | None, company_id: uuid.UUID | None, message: str = "forbidden"
    ) -> None:
        self.require(message, owner_id=owner_id, company_id=company_id)

    def enrollment_for(self, course_id: uuid.UUID) -> UserCourse | None:
        return self.db.scalar(
            select(UserCourse).where(UserCourse.user_id == self.user.id, UserCourse.course_id == course_id)
        )

    def require_enrolled(self, course_id: uuid.UUID) -> UserCourse:
        enrollment = self.enrollment_for(course_id)
        if enrollment is None:
            raise NotEnrolled()
        return enrollment

    def can_see_course(self, course: Course) -> bool:
        if self.administers(course.company_id):
            return True
        if not course.is_published:
            return False
        return course.company_id is None or course.company_id == self.user.company_id

    def require_course_reader(self, course: Course, message: str = "no access to this course") -> None:
        if self.administers(course.company_id):
            return
        if self.enrollment_for(course.id) is None:
            raise Forbidden(message)


def get_access_policy(db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> AccessPolicy:
    return AccessPolicy(db, user)
