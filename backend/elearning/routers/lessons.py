from fastapi import APIRouter, Depends

from elearning.core.access import AccessPolicy, get_access_policy
from elearning.schemas.course import LessonDetailResponse, LessonPublic, LessonUpdateRequest
from elearning.services.catalog import CatalogService, lesson_view

router = APIRouter(prefix="/lessons", tags=["lessons"])


def _catalog(policy: AccessPolicy = Depends(get_access_policy)) -> CatalogService:
    return CatalogService(policy.db, policy)


@router.get("/{lesson_id}", response_model=LessonDetailResponse)
def get_lesson(lesson_id: str, catalog: CatalogService = Depends(_catalog)):
    return catalog.lesson_detail(lesson_id)


@router.put("/{lesson_id}", response_model=LessonPublic)
def update_lesson(lesson_id: str, body: LessonUpdateRequest, catalog: CatalogService = Depends(_catalog)):
    return lesson_view(catalog.update_lesson(lesson_id, body))
