import time
from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings

_STARTED_AT = time.monotonic()


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class HealthService:

    @staticmethod
    async def check_database(db: AsyncSession) -> dict:
        start = time.monotonic()
        try:
            await db.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            return {"status": "down", "error": f"Database error: {e}"}
        return {"status": "up", "latency": _elapsed_ms(start)}

    @staticmethod
    def check_environment() -> dict:
        missing = [name for name in settings.REQUIRED_ENV_VARS if not getattr(settings, name, None)]
        if missing:
            return {"status": "down", "error": f"Missing environment variables: {', '.join(missing)}"}
        return {"status": "up"}

    @staticmethod
    async def report(db: AsyncSession) -> tuple[bool, dict]:
        start = time.monotonic()
        checks = {
            "database": await HealthService.check_database(db),
            "environment": HealthService.check_environment(),
        }
        healthy = all(check["status"] == "up" for check in checks.values())

        return healthy, {
            "status": "healthy" if healthy else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - _STARTED_AT, 3),
            "responseTime": _elapsed_ms(start),
            "checks": checks,
            "version": settings.APP_VERSION,
            "environment": settings.APP_ENV,
        }
