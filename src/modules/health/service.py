from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.modules.organization.events import EventNotifier
from src.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class HealthCheckResult:
    """Result of a health check."""

    service: str
    status: Literal["healthy", "unhealthy"]
    connected: bool
    details: dict = field(default_factory=dict)
    error: str | None = None


@dataclass
class OverallHealthStatus:
    status: Literal["healthy", "unhealthy"]
    services: dict[str, HealthCheckResult]
    timestamp: str


class HealthService:
    """Checks the components the API depends on."""

    def __init__(self, db: AsyncSession, notifier: EventNotifier):
        self.db = db
        self.notifier = notifier

    async def check_database_health(self) -> HealthCheckResult:
        try:
            result = await self.db.execute(text("SELECT 1"))
            return HealthCheckResult(
                service="database",
                status="healthy",
                connected=True,
                details={"test_query_result": result.scalar()},
            )
        except Exception as e:
            logger.error(f"Database health check error: {e}")
            return HealthCheckResult(
                service="database",
                status="unhealthy",
                connected=False,
                error=str(e),
            )

    def check_event_notifier(self) -> HealthCheckResult:
        return HealthCheckResult(
            service="events",
            status="healthy",
            connected=True,
            details={"pending_deliveries": self.notifier.pending},
        )

    async def run_all_checks(self) -> OverallHealthStatus:
        results = [await self.check_database_health(), self.check_event_notifier()]
        overall = (
            "healthy"
            if all(result.status == "healthy" for result in results)
            else "unhealthy"
        )
        return OverallHealthStatus(
            status=overall,
            services={result.service: result for result in results},
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
