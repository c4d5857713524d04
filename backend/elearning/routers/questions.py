from fastapi import APIRouter, Depends

from elearning.core.access import AccessPolicy, get_access_policy
from elearning.schemas.quiz import OptionCreateRequest, OptionPublic
from elearning.services.catalog import CatalogService

router = APIRouter(prefix="/questions", tags=["quizzes"])


@router.post("/{question_id}/options", response_model=OptionPublic, status_code=201)
def create_option(
    question_id: str,
    body: OptionCreateRequest,
    policy: AccessPolicy = Depends(get_access_policy),
):
    return CatalogService(policy.db, policy).create_option(question_id, body)
