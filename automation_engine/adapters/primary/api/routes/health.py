import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable

from fastapi import APIRouter, Response, status
from sqlalchemy import text

from automation_engine.bootstrap import webhook_caller
from automation_engine.shared.config import settings
from automation_engine.shared.database import engine
from automation_engine.shared.logger import get_logger
from automation_engine.shared.redis_client import redis_client

logger = get_logger(__name__)
router = APIRouter(tags=["Health"])


async def _ping_redis() -> None:
    await redis_client.ping()


async def _ping_postgres() -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def _check_dependency(name: str, check: Callable[[], Awaitable[None]]) -> bool:
    try:
        await check()
        return True
    except Exception as e:
        logger.error("health_check_failed", dependency=name, error=str(e))
        return False


@router.get("/health")
async def health_check(response: Response):
    """
    Liveness of the stores runs depend on.

    Redis guards resume and schedule sweeps, Postgres holds workflows and runs;
    either one down means the engine cannot start or resume runs. Open webhook
    circuits are reported but do not degrade the service.
    """
    checks = {"redis": _ping_redis, "postgres": _ping_postgres}
    results = await asyncio.gather(*(_check_dependency(name, check) for name, check in checks.items()))
    dependencies = {
        name: "healthy" if ok else "unhealthy" for name, ok in zip(checks, results)
    }
    healthy = all(results)

    if not healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "status": "healthy" if healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.APP_VERSION,
        "dependencies": dependencies,
        "open_webhook_circuits": webhook_caller.open_circuits(),
    }
