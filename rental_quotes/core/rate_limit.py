import logging
from fastapi import HTTPException
from redis.exceptions import RedisError
from rental_quotes.core.redis import get_redis
from rental_quotes.core.config import settings
from rental_quotes.core.metrics import rate_limit_exceeded

logger = logging.getLogger(__name__)


async def check_rate_limit(user_id: int, scope: str = "api"):
    """Fixed-window per-user limit, counted separately for each ``scope``.

    Without Redis the check is skipped so quoting keeps working.
    """
    redis = get_redis()
    if redis is None:
        logger.warning(f"Rate limiting skipped for {scope}: Redis not available")
        return

    key = f"rl:{scope}:{user_id}"
    try:
        current = await redis.get(key)
        if current is None:
            await redis.set(key, "1", ex=settings.RATE_LIMIT_WINDOW)
            return
        if int(current) < settings.RATE_LIMIT:
            await redis.incr(key)
            return
    except RedisError as e:
        logger.warning(f"Rate limiting skipped for {scope}: {e}")
        return

    rate_limit_exceeded.labels(user_id=str(user_id)).inc()
    logger.warning(f"Rate limit exceeded for user {user_id} on {scope}")
    raise HTTPException(
        status_code=429,
        detail="Rate limit exceeded",
        headers={"Retry-After": str(settings.RATE_LIMIT_WINDOW)},
    )
