import uuid
from types import SimpleNamespace

import pytest

from elearning.core.access import AccessPolicy
from elearning.core.errors import Forbidden
from elearning.models import UserRole


COMPANY = uuid.uuid4()


def _policy(role=UserRole.employee, company_id=COMPANY):
    user = SimpleNamespace(id=uuid.uuid4(), role=role, company_id=company_id)
    return AccessPolicy(db=None, user=user)


def test_owner_is_allowed():
    p = _policy()
    assert p.allows(owner_id=p.user.id)
    assert not p.allows(owner_id=uuid.uuid4())
    assert not p.allows(owner_id=None)


def test_admin_acts_within_own_company_only():
    p = _policy(role=UserRole.admin)
    assert p.allows(company_id=COMPANY)
    assert not p.allows(company_id=uuid.uuid4())
    assert not p.allows(company_id=None)


def test_companyless_admin_manages_companyless_rows():
    p = _policy(role=UserRole.admin, company_id=None)
    assert p.allows(company_id=None)
    assert not p.allows(company_id=COMPANY)


def test_employee_never_administers():
    p = _policy()
    assert not p.allows(company_id=COMPANY)


def test_role_requirement():
    admin = _policy(role=UserRole.admin)
    learner = _policy()
    assert admin.allows(company_id=COMPANY, role=UserRole.admin)
    assert not learner.allows(owner_id=learner.user.id, role=UserRole.admin)


def test_owner_or_admin():
    admin = _policy(role=UserRole.admin)
    owner = uuid.uuid4()
    assert admin.allows(owner_id=owner, company_id=COMPANY)
    assert not _policy().allows(owner_id=owner, company_id=COMPANY)


def test_require_raises_forbidden_with_message():
    p = _policy()
    with pytest.raises(Forbidden) as exc:
        p.require_owner(uuid.uuid4(), "not yours")
    assert exc.value.message == "not yours"
    assert exc.value.status_code == 403


def test_can_see_course():
    learner = _policy()
    published = SimpleNamespace(company_id=COMPANY, is_published=True)
    draft = SimpleNamespace(company_id=COMPANY, is_published=False)
    shared = SimpleNamespace(company_id=None, is_published=True)
    foreign = SimpleNamespace(company_id=uuid.uuid4(), is_published=True)

    assert learner.can_see_course(published)
    assert learner.can_see_course(shared)
    assert not learner.can_see_course(draft)
    assert not learner.can_see_course(foreign)
    assert _policy(role=UserRole.admin).can_see_course(draft)
