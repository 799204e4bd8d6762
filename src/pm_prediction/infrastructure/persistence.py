"""PredictionRepository — raw SQL reads from ai_predictions.

Predictions are written by the analysis pipeline; this side only reads.
"""

import uuid
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_prediction.domain.models import NEUTRAL_CONFIDENCE, PredictionSnapshot

_GET_PREDICTION_SQL = text("""
    SELECT CAST(id AS TEXT) AS id, token_address, prediction, confidence,
           price_target_24h, current_price, created_at
    FROM ai_predictions WHERE id = CAST(:id AS UUID)
""")


def _row_to_snapshot(row: Any) -> PredictionSnapshot:
    """Convert a DB result row to a PredictionSnapshot, filling nullable columns."""
    return PredictionSnapshot(
        id=str(row.id),
        token_address=row.token_address,
        prediction=row.prediction or "neutral",
        confidence=NEUTRAL_CONFIDENCE if row.confidence is None else int(row.confidence),
        current_price=row.current_price if row.current_price is not None else Decimal(0),
        price_target_24h=row.price_target_24h,
        created_at=row.created_at,
    )


class PredictionRepository:
    """Concrete implementation of PredictionRepositoryProtocol using raw SQL."""

    async def get_by_id(self, prediction_id: str, db: AsyncSession) -> PredictionSnapshot | None:
        try:
            uuid.UUID(prediction_id)
        except (ValueError, TypeError):
            return None
        result = await db.execute(_GET_PREDICTION_SQL, {"id": prediction_id})
        row = result.fetchone()
        return _row_to_snapshot(row) if row else None
