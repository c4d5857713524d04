from __future__ import annotations

from fastapi import APIRouter, Depends

from elearning.core.access import AccessPolicy, get_access_policy
from elearning.core.rate_limit import rate_limit
from elearning.schemas.course import (
    CourseCreateRequest,
    CourseDetailResponse,
    CoursePublic,
    CourseUpdateRequest,
    LessonCreateRequest,
    LessonPublic,
)
from elearning.schemas.enrollment import EnrollmentPublic, ProgressSnapshot
from elearning.schemas.quiz import QuizCreateRequest, QuizPublic
from elearning.services.catalog import CatalogService, course_view, lesson_view, quiz_view
from elearning.services.enrollment import EnrollmentService, enrollment_view
from elearning.services.progress import ProgressService

router = APIRouter(prefix="/courses", tags=["courses"])


def _catalog(policy: AccessPolicy = Depends(get_access_policy)) -> CatalogService:
    return CatalogService(policy.db, policy)


def _enrollments(policy: AccessPolicy = Depends(get_access_policy)) -> EnrollmentService:
    return EnrollmentService(policy.db, policy)


@router.get("", response_model=list[CoursePublic])
def list_courses(catalog: CatalogService = Depends(_catalog)):
    return catalog.list_courses()


@router.post("", response_model=CoursePublic, status_code=201)
def create_course(body: CourseCreateRequest, catalog: CatalogService = Depends(_catalog)):
    return course_view(catalog.create_course(body))


@router.get("/{course_id}", response_model=CourseDetailResponse)
def get_course(course_id: str, catalog: CatalogService = Depends(_catalog)):
    return catalog.course_detail(course_id)


@router.put("/{course_id}", response_model=CoursePublic)
def update_course(course_id: str, body: CourseUpdateRequest, catalog: CatalogService = Depends(_catalog)):
    return course_view(catalog.update_course(course_id, body))


@router.get("/{course_id}/lessons", response_model=list[LessonPublic])
def list_lessons(course_id: str, catalog: CatalogService = Depends(_catalog)):
    return [lesson_view(x) for x in catalog.list_lessons(course_id)]


@router.post("/{course_id}/lessons", response_model=LessonPublic, status_code=201)
def create_lesson(course_id: str, body: LessonCreateRequest, catalog: CatalogService = Depends(_catalog)):
    return lesson_view(catalog.create_lesson(course_id, body))


@router.get("/{course_id}/quizzes", response_model=list[QuizPublic])
def list_quizzes(course_id: str, catalog: CatalogService = Depends(_catalog)):
    return [quiz_view(q) for q in catalog.list_quizzes(course_id)]


@router.post("/{course_id}/quizzes", response_model=QuizPublic, status_code=201)
def create_quiz(course_id: str, body: QuizCreateRequest, catalog: CatalogService = Depends(_catalog)):
    return quiz_view(catalog.create_quiz(course_id, body))


@router.post("/{course_id}/enroll", response_model=EnrollmentPublic, status_code=201)
def enroll(
    course_id: str,
    enrollments: EnrollmentService = Depends(_enrollments),
    _: object = rate_limit(key_prefix="enroll", limit=30, window_seconds=60),
):
    return enrollment_view(enrollments.enroll(course_id))


@router.get("/{course_id}/enrollments", response_model=list[EnrollmentPublic])
def list_enrollments(course_id: str, enrollments: EnrollmentService = Depends(_enrollments)):
    return [enrollment_view(uc) for uc in enrollments.list_for_course(course_id)]


@router.get("/{course_id}/progress", response_model=ProgressSnapshot)
def my_progress(course_id: str, catalog: CatalogService = Depends(_catalog)):
    course = catalog.get_course(course_id)
    uc = catalog.policy.require_enrolled(course.id)
    return ProgressService(catalog.db).snapshot(uc)
