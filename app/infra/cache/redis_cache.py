# app/infra/cache/redis_cache.py
import os
import json
from typing import Any, Optional
import redis.asyncio as aioredis

from app.domain.ports import CachePort


DEFAULT_TTL = int(os.getenv("STATUS_TTL_SECONDS", "604800"))  # 7d default

class RedisCache(CachePort):
    """
    JSON-over-Redis cache used for job status and upload reports.

        cache.get(key) -> JSON-decoded object or None
        cache.set(key, value, ttl=DEFAULT_TTL)
        from_env()     -> construct from REDIS_URL
    """
    def __init__(self, client: Optional[aioredis.Redis] = None):
        self.r = client or aioredis.from_url(
            os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            encoding="utf-8",
            decode_responses=True,
        )

    @classmethod
    def from_env(cls):
        url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
        return cls(aioredis.from_url(url, encoding="utf-8", decode_responses=True))

    async def get(self, k: str):
        v = await self.r.get(k)
        return json.loads(v) if v else None

    async def set(self, k: str, v: Any, ttl: int = DEFAULT_TTL):
        await self.r.set(k, json.dumps(v, ensure_ascii=False, default=str), ex=ttl)

    async def ping(self) -> bool:
        return bool(await self.r.ping())

    async def delete(self, *keys: str) -> int:
        return await self.r.delete(*keys)
