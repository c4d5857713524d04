from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from elearning.core.auth_audit import client_ip
from elearning.core.config import settings
from elearning.core.redis_client import get_redis


def rate_limit(*, key_prefix: str, limit: int, window_seconds: int):
    """Fixed-window request counter per client IP and path, kept in Redis."""

    async def _dep(request: Request) -> None:
        if not settings.rate_limit_enabled:
            return
        key = f"rl:{key_prefix}:{request.url.path}:{client_ip(request) or 'unknown'}"

        # Fail open when Redis is unavailable.
        try:
            r = get_redis()
            current = int(r.incr(key))
            if current == 1:
                r.expire(key, window_seconds)
            ttl = r.ttl(key) if current > limit else None
        except Exception:
            return

        if current > limit:
            raise HTTPException(
                status_code=429,
                detail="rate limit exceeded",
                headers={"Retry-After": str(ttl if ttl and ttl > 0 else window_seconds)},
            )

    return Depends(_dep)
