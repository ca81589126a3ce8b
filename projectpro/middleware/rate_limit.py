"""
Rate Limiting Middleware

Per-tenant token bucket stored in Redis. Limits come from the tenant
row when set, otherwise from settings.

If Redis is unreachable the limiter lets requests through and logs it.
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from typing import Optional, Tuple
import redis
import time
import logging
from projectpro.config import get_settings
from projectpro.utils.logging import log_security_event

logger = logging.getLogger(__name__)
settings = get_settings()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Token bucket rate limiter keyed by tenant id."""

    def __init__(self, app, redis_client: Optional[redis.Redis] = None, enabled: Optional[bool] = None):
        super().__init__(app)
        self.enabled = settings.RATE_LIMIT_ENABLED if enabled is None else enabled
        self.redis_client = redis_client
        self.redis_available = False

        if not self.enabled:
            logger.info("Rate limiting disabled by configuration")
            return

        try:
            if self.redis_client is None:
                self.redis_client = redis.from_url(
                    settings.REDIS_URL,
                    decode_responses=True,
                    socket_connect_timeout=5
                )
            self.redis_client.ping()
            self.redis_available = True
            logger.info("Redis connection established for rate limiting")
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.error(f"Redis connection failed, rate limiting off: {e}")

    async def dispatch(self, request: Request, call_next):
        if not self.enabled or not self.redis_available:
            return await call_next(request)

        # Set by TenantMiddleware; public paths have none
        tenant = getattr(request.state, "tenant", None)
        if not tenant:
            return await call_next(request)

        allowed, retry_after = self.check_rate_limit(
            tenant.id,
            tenant.rate_limit_per_minute or settings.RATE_LIMIT_PER_MINUTE,
            tenant.rate_limit_burst or settings.RATE_LIMIT_BURST,
        )

        if not allowed:
            log_security_event(
                "rate_limit_exceeded",
                {"tenant_id": tenant.id, "path": request.url.path},
                logger,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "detail": "Rate limit exceeded. Please try again later.",
                    "type": "rate_limit_exceeded",
                    "retry_after": retry_after
                },
                headers={"Retry-After": str(retry_after)}
            )

        return await call_next(request)

    def check_rate_limit(self, tenant_id: str, rate_limit: int, burst: int) -> Tuple[bool, int]:
        """
        Consume one token from the tenant's bucket.

        Returns (allowed, retry_after_seconds). The bucket holds at most
        `burst` tokens and refills at `rate_limit` tokens per minute.
        """
        key = f"rate_limit:{tenant_id}"
        key_timestamp = f"{key}:timestamp"
        refill_per_second = rate_limit / 60.0

        try:
            current_tokens = self.redis_client.get(key)
            last_update = self.redis_client.get(key_timestamp)
            now = time.time()

            if current_tokens is None:
                self._store(key, key_timestamp, burst - 1, now)
                return True, 0

            last_update = float(last_update) if last_update else now
            tokens = min(burst, float(current_tokens) + (now - last_update) * refill_per_second)

            if tokens >= 1:
                self._store(key, key_timestamp, tokens - 1, now)
                return True, 0

            retry_after = int((1 - tokens) / refill_per_second) + 1
            return False, retry_after

        except redis.RedisError as e:
            logger.error(f"Redis error in rate limiting: {e}")
            return True, 0

    def _store(self, key: str, key_timestamp: str, tokens: float, now: float) -> None:
        pipe = self.redis_client.pipeline()
        pipe.setex(key, 60, tokens)
        pipe.setex(key_timestamp, 60, now)
        pipe.execute()
