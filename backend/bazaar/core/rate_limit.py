import time
from fastapi import HTTPException, Request, status
from redis import asyncio as aioredis

from .config import get_settings


class RateLimiter:
    def __init__(self, prefix: str = "rate") -> None:
        settings = get_settings()
        self.client = aioredis.Redis.from_url(settings.redis_url, decode_responses=True)
        self.limit = settings.rate_limit_per_minute
        self.prefix = prefix

    async def __call__(self, request: Request) -> None:
        identifier = request.client.host if request.client else "anonymous"
        key = f"{self.prefix}:{identifier}:{int(time.time() // 60)}"
        current = await self.client.incr(key)
        if current == 1:
            await self.client.expire(key, 60)
        if current > self.limit:
            raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Too many requests")


geocode_rate_limiter = RateLimiter(prefix="rate:geocode")
