"""
Rate Limiting Middleware

Per-client-IP fixed-window limits in Redis, with two buckets:
- auth: /api/v1/auth/* (login, bootstrap, password reset, ...)
- api: every other /api/* path

This is admission control against brute force and floods, not a
per-tenant quota.

PRODUCTION NOTES:
- Fixed windows allow up to 2x the limit across a window boundary
- Redis is a single point of failure; we fail open when it is down
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from typing import Optional, Tuple
import redis
import logging
from safestart.config import get_settings
from safestart.core.exceptions import RateLimitExceeded
from safestart.utils.logging import log_security_event

logger = logging.getLogger(__name__)
settings = get_settings()

AUTH_PREFIX = "/api/v1/auth"
API_PREFIX = "/api"


class RateLimitMiddleware(BaseHTTPMiddleware):

    def __init__(self, app, redis_client: Optional[redis.Redis] = None):
        super().__init__(app)

        self.window = settings.RATE_LIMIT_WINDOW_SECONDS
        self.limits = {
            "auth": settings.AUTH_RATE_LIMIT,
            "api": settings.API_RATE_LIMIT,
        }
        self.redis_client = redis_client
        self.redis_available = False

        if not settings.RATE_LIMIT_ENABLED:
            logger.info("Rate limiting disabled by configuration")
            return

        if self.redis_client is None:
            self.redis_client = redis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5
            )

        try:
            self.redis_client.ping()
            self.redis_available = True
            logger.info("Redis connection established for rate limiting")
        except (redis.ConnectionError, redis.TimeoutError) as e:
            # Fail open: availability over strict limiting
            logger.error(f"Redis connection failed, rate limiting disabled: {e}")

    @staticmethod
    def bucket_for(path: str) -> Optional[str]:
        if path.startswith(AUTH_PREFIX):
            return "auth"
        if path.startswith(API_PREFIX):
            return "api"
        return None

    @staticmethod
    def client_ip(request: Request) -> str:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    async def dispatch(self, request: Request, call_next):
        bucket = self.bucket_for(request.url.path)
        if bucket is None or not self.redis_available:
            return await call_next(request)

        ip = self.client_ip(request)
        allowed, retry_after = self._check_rate_limit(bucket, ip)

        if not allowed:
            log_security_event(
                "rate_limit_exceeded",
                {"bucket": bucket, "ip_address": ip, "path": request.url.path},
                logger
            )
            # Raised exceptions would bypass the app handlers here
            exc = RateLimitExceeded(retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content={"success": False, "message": exc.detail},
                headers=exc.headers
            )

        return await call_next(request)

    def _check_rate_limit(self, bucket: str, ip: str) -> Tuple[bool, int]:
        """
        Count this request in the current window.

        Returns: (allowed, retry_after_seconds)
        """
        key = f"rate_limit:{bucket}:{ip}"

        try:
            pipe = self.redis_client.pipeline()
            pipe.incr(key)
            pipe.ttl(key)
            count, ttl = pipe.execute()

            # First hit in the window starts the clock
            if ttl is None or ttl < 0:
                self.redis_client.expire(key, self.window)
                ttl = self.window

            if count > self.limits[bucket]:
                return False, max(int(ttl), 1)
            return True, 0

        except redis.RedisError as e:
            logger.error(f"Redis error in rate limiting: {e}")
            return True, 0
