from fastapi import APIRouter, Depends, Request
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from elearning.core.config import settings
from elearning.core.errors import Conflict, Forbidden, Unauthenticated, ValidationError
from elearning.core.rate_limit import rate_limit
from elearning.core.security import create_access_token, get_current_user, hash_password, verify_password
from elearning.core.auth_audit import record_auth_event
from elearning.db.session import get_db
from elearning.models.user import User, UserRole
from elearning.services.lookups import parse_uuid

router = APIRouter(prefix="/auth", tags=["auth"])


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int | None = None


class MeResponse(BaseModel):
    id: str
    name: str
    role: str
    position: str | None
    company_id: str | None


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    position: str | None = None
    company_id: str | None = None
    password: str


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user_id=str(user.id), role=user.role.value),
        expires_in=int(settings.jwt_access_token_minutes) * 60,
    )


@router.post("/register", response_model=TokenResponse)
def register(
    request: Request,
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    _: object = rate_limit(key_prefix="auth_register", limit=10, window_seconds=60),
):
    if not settings.allow_public_register:
        raise Forbidden("registration disabled")

    if not payload.password or len(payload.password) < int(settings.password_min_length or 0):
        raise ValidationError("password too short", field="password")

    company_id = None
    if payload.company_id:
        company_id = parse_uuid(payload.company_id, field="company_id")

    existing = db.scalar(select(User).where(User.name == payload.name))
    if existing is not None:
        record_auth_event(db, request, "auth_register_failed", reason="user_exists", username=payload.name)
        db.commit()
        raise Conflict("user already exists", error_code="user_exists")

    # Self-registration only ever creates learners.
    user = User(
        name=payload.name,
        position=payload.position,
        role=UserRole.employee,
        company_id=company_id,
        password_hash=hash_password(payload.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    record_auth_event(db, request, "auth_register_success", user_id=user.id)
    db.commit()

    return _token_response(user)


@router.post("/token", response_model=TokenResponse)
def token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    _: object = rate_limit(key_prefix="auth_token", limit=20, window_seconds=60),
):
    user = db.scalar(select(User).where(User.name == form_data.username))
    if user is None or not verify_password(form_data.password, user.password_hash):
        record_auth_event(db, request, "auth_login_failed", username=form_data.username)
        db.commit()
        raise Unauthenticated("invalid credentials")

    record_auth_event(db, request, "auth_login_success", user_id=user.id)
    db.commit()

    return _token_response(user)


@router.get("/me", response_model=MeResponse)
def me(user: User = Depends(get_current_user)):
    return {
        "id": str(user.id),
        "name": user.name,
        "role": user.role.value,
        "position": user.position,
        "company_id": str(user.company_id) if user.company_id else None,
    }
