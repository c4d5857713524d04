from __future__ import annotations

import json

from fastapi import Request
from sqlalchemy.orm import Session

from elearning.core.config import settings
from elearning.models.audit import SecurityAuditEvent


def client_ip(request: Request) -> str | None:
    if settings.trust_proxy_headers:
        forwarded = (request.headers.get("x-real-ip") or "").strip()
        if not forwarded:
            forwarded = (request.headers.get("x-forwarded-for") or "").split(",")[0].strip()
        if forwarded:
            return forwarded
    return request.client.host if request.client else None


def record_auth_event(db: Session, request: Request, event_type: str, *, user_id=None, **meta) -> SecurityAuditEvent:
    """Stage an authentication event on ``db``; the caller commits."""
    user_agent = (request.headers.get("user-agent") or "").strip()
    if user_agent:
        meta.setdefault("user_agent", user_agent)
    event = SecurityAuditEvent(
        actor_user_id=user_id,
        target_user_id=user_id,
        event_type=event_type,
        meta=json.dumps(meta, ensure_ascii=False) if meta else None,
        request_id=getattr(request.state, "request_id", None),
        ip=client_ip(request),
    )
    db.add(event)
    return event
