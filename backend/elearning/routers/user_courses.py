from __future__ import annotations

from fastapi import APIRouter, Depends

from elearning.core.access import AccessPolicy, get_access_policy
from elearning.schemas.enrollment import EnrollmentPublic, MyEnrollment, ProgressUpdateRequest, ProgressUpdateResponse
from elearning.services.enrollment import EnrollmentService, enrollment_view
from elearning.services.progress import ProgressService

router = APIRouter(prefix="/user-courses", tags=["enrollments"])


def _enrollments(policy: AccessPolicy = Depends(get_access_policy)) -> EnrollmentService:
    return EnrollmentService(policy.db, policy)


@router.get("", response_model=list[MyEnrollment])
def my_enrollments(enrollments: EnrollmentService = Depends(_enrollments)):
    return enrollments.list_mine()


@router.get("/{user_course_id}", response_model=EnrollmentPublic)
def get_enrollment(user_course_id: str, enrollments: EnrollmentService = Depends(_enrollments)):
    return enrollment_view(enrollments.get(user_course_id))


@router.put("/{user_course_id}/progress", response_model=ProgressUpdateResponse)
def update_progress(
    user_course_id: str,
    body: ProgressUpdateRequest,
    enrollments: EnrollmentService = Depends(_enrollments),
):
    if body.current_lesson_id:
        uc = enrollments.advance_lesson(user_course_id, body.current_lesson_id)
    else:
        uc = enrollments.get_owned(user_course_id)

    snapshot = ProgressService(enrollments.db).recompute(uc)
    return {"enrollment": enrollment_view(uc), "progress": snapshot}
