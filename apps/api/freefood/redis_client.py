from __future__ import annotations

from redis import Redis
from redis.connection import ConnectionPool

from freefood.core.config import settings

_pool: ConnectionPool | None = None


def get_redis() -> Redis:
    global _pool
    if _pool is None:
        # 1s timeouts; callers fail open on RedisError
        _pool = ConnectionPool.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=1,
            socket_timeout=1,
        )
    return Redis(connection_pool=_pool)


def count_in_window(key: str, window_seconds: int) -> int:
    """Increment a fixed-window counter; the key outlives its window by at most one window."""
    pipe = get_redis().pipeline()
    pipe.incr(key)
    pipe.expire(key, window_seconds)
    count, _ = pipe.execute()
    return int(count)
