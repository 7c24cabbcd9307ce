from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from .service import HealthService

router = APIRouter(tags=["Health"])

NO_CACHE = "no-store, no-cache, must-revalidate, max-age=0"


@router.head("/health", include_in_schema=False)
async def health_check_head(db: AsyncSession = Depends(get_db)):
    """Lightweight probe for load balancers that prefer HEAD: database only, no body."""
    database = await HealthService.check_database(db)
    return Response(status_code=200 if database["status"] == "up" else 503)


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Uptime / readiness probe. 200 when every check is up, 503 otherwise."""
    healthy, report = await HealthService.report(db)
    if not healthy:
        return JSONResponse(report, status_code=503)
    return JSONResponse(report, status_code=200, headers={"Cache-Control": NO_CACHE})
