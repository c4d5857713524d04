from __future__ import annotations

from fastapi import APIRouter, Depends

from elearning.core.access import AccessPolicy, get_access_policy
from elearning.core.rate_limit import rate_limit
from elearning.schemas.attempt import AttemptPublic
from elearning.schemas.quiz import QuestionCreateRequest, QuestionPublic, QuizDetailResponse
from elearning.services.assessment import AssessmentService, attempt_view
from elearning.services.catalog import CatalogService

router = APIRouter(prefix="/quizzes", tags=["quizzes"])


def _catalog(policy: AccessPolicy = Depends(get_access_policy)) -> CatalogService:
    return CatalogService(policy.db, policy)


def _assessment(policy: AccessPolicy = Depends(get_access_policy)) -> AssessmentService:
    return AssessmentService(policy.db, policy)


@router.get("/{quiz_id}", response_model=QuizDetailResponse)
def get_quiz(quiz_id: str, catalog: CatalogService = Depends(_catalog)):
    return catalog.quiz_detail(quiz_id)


@router.post("/{quiz_id}/questions", response_model=QuestionPublic, status_code=201)
def create_question(quiz_id: str, body: QuestionCreateRequest, catalog: CatalogService = Depends(_catalog)):
    return catalog.create_question(quiz_id, body)


@router.post("/{quiz_id}/attempts", response_model=AttemptPublic, status_code=201)
def start_attempt(
    quiz_id: str,
    assessment: AssessmentService = Depends(_assessment),
    _: object = rate_limit(key_prefix="quiz_start", limit=30, window_seconds=60),
):
    return attempt_view(assessment.start_attempt(quiz_id))


@router.get("/{quiz_id}/attempts", response_model=list[AttemptPublic])
def list_my_attempts(quiz_id: str, assessment: AssessmentService = Depends(_assessment)):
    return [attempt_view(a) for a in assessment.list_my_attempts(quiz_id)]
