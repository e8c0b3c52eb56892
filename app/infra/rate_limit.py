import functools
import logging

from fastapi import HTTPException, Request

from app.config.settings import RateLimitConfig, config
from app.i18n import i18n
from app.infra.redis import get_redis
from app.utils.locale import get_locale

logger = logging.getLogger(__name__)


class RedisRateLimiter:
    """
    Fixed-window limiter for unauthenticated endpoints (Redis Lua script).
    Without Redis every request is allowed.
    """

    lua_script = """
    local key = KEYS[1]
    local limit = tonumber(ARGV[1])
    local window = tonumber(ARGV[2])

    local current = redis.call('INCR', key)
    if current == 1 then
        redis.call('EXPIRE', key, window)
    end

    if current > limit then
        local ttl = redis.call('TTL', key)
        return {0, ttl}
    end

    return {1, 0}
    """

    def __init__(self, scope: str, settings: RateLimitConfig = config.rate_limit):
        self.scope = scope
        self.settings = settings

    async def __call__(self, request: Request):
        if not self.settings.enabled:
            return True

        redis = get_redis()
        if not redis:
            return True

        client_ip = request.client.host if request.client else "unknown"
        key = f"rate:{self.scope}:{client_ip}"

        try:
            allowed, ttl = await redis.eval(
                self.lua_script,
                1,
                key,
                self.settings.max_requests,
                self.settings.window_seconds
            )
        except Exception as e:
            logger.warning(f"Rate limiter unavailable: {e}")
            return True

        if not allowed:
            locale = get_locale(request.headers.get("accept-language"))
            _ = functools.partial(i18n.get, locale=locale)
            raise HTTPException(
                status_code=429,
                detail=_("error.rate_limit", seconds=ttl),
                headers={"Retry-After": str(ttl)}
            )

        return True


login_limiter = RedisRateLimiter("admin-login")
otp_limiter = RedisRateLimiter("admin-otp")
subscribe_limiter = RedisRateLimiter("subscribe")
