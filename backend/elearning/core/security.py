from __future__ import annotations

import uuid
from datetime import datetime, timedelta

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.orm import Session

from elearning.core.config import settings
from elearning.core.errors import Unauthenticated
from elearning.db.session import get_db
from elearning.models.user import User


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(*, user_id: str, role: str) -> str:
    now = datetime.utcnow()
    expire = now + timedelta(minutes=settings.jwt_access_token_minutes)
    payload = {
        "sub": user_id,
        "role": role,
        "iat": now,
        "exp": expire,
        "iss": str(settings.jwt_issuer),
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    token: str = Depends(oauth2_scheme),
) -> User:
    if not token:
        token = request.cookies.get("appcc_token")
    if not token:
        raise Unauthenticated()

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=str(settings.jwt_issuer),
        )
        user_id = payload.get("sub")
        if not user_id:
            raise Unauthenticated("invalid token")
    except JWTError as e:
        raise Unauthenticated("invalid token") from e

    try:
        user_id = uuid.UUID(str(user_id))
    except ValueError as e:
        raise Unauthenticated("invalid token") from e

    user = db.scalar(select(User).where(User.id == user_id))
    if user is None:
        raise Unauthenticated("invalid token")

    request.state.user_id = str(user.id)
    return user
