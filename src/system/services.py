import sentry_sdk
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from loggers import get_logger
from src.core.errors.exceptions import InfrastructureException
from src.system.schemas import HealthCheckResponse


class HealthService:
    def __init__(self) -> None:
        self.logger = get_logger(__name__)

    async def get_status(self, session: AsyncSession) -> HealthCheckResponse:
        postgres_is_ok = await self._check_postgres(session)
        if not postgres_is_ok:
            raise InfrastructureException(
                "System health check failed",
                additional_info={"postgres": postgres_is_ok},
            )
        return HealthCheckResponse(status="ok")

    async def _check_postgres(self, session: AsyncSession) -> bool:
        try:
            await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            self.logger.error("Postgres health check failed", exc_info=exc)
            sentry_sdk.capture_exception(exc)
            return False
