from __future__ import annotations

import uuid
from typing import TypeVar

from sqlalchemy.orm import Session

from elearning.core.errors import NotFound, ValidationError


T = TypeVar("T")


def parse_uuid(value, *, field: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError) as e:
        raise ValidationError(f"invalid {field}", field=field) from e


def get_or_404(db: Session, model: type[T], obj_id, *, what: str) -> T:
    obj = db.get(model, parse_uuid(obj_id, field=f"{what}_id"))
    if obj is None:
        raise NotFound(f"{what} not found")
    return obj
