from __future__ import annotations

import redis

from elearning.core.config import settings


_client: redis.Redis | None = None


def get_redis() -> redis.Redis:
    """Process-wide client. Short socket timeouts keep rate limiting from stalling requests."""
    global _client
    if _client is None:
        _client = redis.Redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_timeout=2,
            socket_connect_timeout=2,
        )
    return _client
