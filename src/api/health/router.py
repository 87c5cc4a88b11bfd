"""Health check endpoints for monitoring."""

from fastapi import APIRouter

from src.api.core.dependencies import HealthServiceDep
from src.modules.health.service import OverallHealthStatus

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check(health_service: HealthServiceDep) -> OverallHealthStatus:
    """Check the database and the event notifier."""
    return await health_service.run_all_checks()


@router.get("/liveness")
async def liveness_check():
    """Simple liveness check - indicates if service is running."""
    return {"status": "alive", "service": "orgkeeper-api"}
