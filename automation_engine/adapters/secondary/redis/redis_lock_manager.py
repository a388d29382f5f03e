import redis.asyncio as redis

from automation_engine.ports.secondary.lock_manager import ILockManager
from automation_engine.shared.config import settings


class RedisLockManager(ILockManager):
    def __init__(self, redis_client: redis.Redis):
        self._redis = redis_client

    async def acquire_lock(self, key: str, ttl_seconds: int | None = None) -> bool:
        ttl = ttl_seconds if ttl_seconds is not None else settings.LOCK_TTL_SECONDS
        return bool(await self._redis.set(f"lock:{key}", "1", nx=True, ex=ttl))

    async def release_lock(self, key: str) -> None:
        await self._redis.delete(f"lock:{key}")
