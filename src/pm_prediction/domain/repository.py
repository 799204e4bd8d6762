"""Repository Protocol for AI prediction snapshots (read-only)."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_prediction.domain.models import PredictionSnapshot


class PredictionRepositoryProtocol(Protocol):
    async def get_by_id(self, prediction_id: str, db: AsyncSession) -> PredictionSnapshot | None: ...
