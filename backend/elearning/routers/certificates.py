from fastapi import APIRouter, Depends

from elearning.core.access import AccessPolicy, get_access_policy
from elearning.schemas.enrollment import CertificatePublic
from elearning.services.certificates import CertificateService

router = APIRouter(prefix="/certificates", tags=["certificates"])


def _certificates(policy: AccessPolicy = Depends(get_access_policy)) -> CertificateService:
    return CertificateService(policy.db, policy)


@router.get("", response_model=list[CertificatePublic])
def my_certificates(certificates: CertificateService = Depends(_certificates)):
    return certificates.list_mine()


@router.get("/{code}", response_model=CertificatePublic)
def get_certificate(code: str, certificates: CertificateService = Depends(_certificates)):
    return certificates.get(code)
