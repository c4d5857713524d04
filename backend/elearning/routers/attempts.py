from __future__ import annotations

from fastapi import APIRouter, Depends

from elearning.core.access import AccessPolicy, get_access_policy
from elearning.core.rate_limit import rate_limit
from elearning.schemas.attempt import (
    AnswerPublic,
    AnswerSubmitRequest,
    AttemptCompleteResponse,
    AttemptResultsResponse,
)
from elearning.services.assessment import AssessmentService, answer_view

router = APIRouter(prefix="/attempts", tags=["attempts"])


def _assessment(policy: AccessPolicy = Depends(get_access_policy)) -> AssessmentService:
    return AssessmentService(policy.db, policy)


@router.post("/{attempt_id}/answers", response_model=AnswerPublic, status_code=201)
def submit_answer(
    attempt_id: str,
    body: AnswerSubmitRequest,
    assessment: AssessmentService = Depends(_assessment),
    _: object = rate_limit(key_prefix="attempt_answer", limit=240, window_seconds=60),
):
    answer = assessment.submit_answer(
        attempt_id,
        question_id=body.question_id,
        option_id=body.option_id,
        text=body.text,
    )
    return answer_view(answer)


@router.post("/{attempt_id}/complete", response_model=AttemptCompleteResponse)
def complete_attempt(
    attempt_id: str,
    assessment: AssessmentService = Depends(_assessment),
    _: object = rate_limit(key_prefix="attempt_complete", limit=30, window_seconds=60),
):
    return assessment.finalize_attempt(attempt_id)


@router.get("/{attempt_id}/results", response_model=AttemptResultsResponse)
def attempt_results(attempt_id: str, assessment: AssessmentService = Depends(_assessment)):
    return assessment.results(attempt_id)
