import logging
import time

from fastapi import HTTPException, Request, status
from redis.exceptions import RedisError

logger = logging.getLogger("ragcrawler.ratelimit")


async def count_recent_requests(redis, key: str, window_seconds: int) -> int:
    """Record one request under `key` and return how many came before it
    inside the sliding window (Redis sorted set scored by timestamp).
    """
    now = time.time()
    pipe_key = f"ratelimit:{key}"

    pipe = redis.pipeline()
    pipe.zremrangebyscore(pipe_key, 0, now - window_seconds)
    pipe.zcard(pipe_key)
    pipe.zadd(pipe_key, {str(now): now})
    pipe.expire(pipe_key, window_seconds)
    results = await pipe.execute()
    return results[1]


async def check_rate_limit(
    request: Request,
    key: str,
    limit: int,
    window_seconds: int = 60,
) -> None:
    """Raise 429 once `key` has made `limit` requests within the window.

    Fails open: when Redis is unreachable the request is let through and
    the health endpoint reports the service as degraded.
    """
    try:
        request_count = await count_recent_requests(
            request.app.state.redis, key, window_seconds
        )
    except RedisError as e:
        logger.warning("Rate limiter unavailable for key=%s: %s", key, e)
        return

    if request_count >= limit:
        logger.info("Rate limit hit for %s (%d/%d)", key, request_count, limit)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "Rate limit exceeded",
                "limit": limit,
                "window_seconds": window_seconds,
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )
