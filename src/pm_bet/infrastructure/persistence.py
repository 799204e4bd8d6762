"""BetRepository — raw SQL persistence implementation.

Reads are always scoped to (id, wallet address) so another wallet's bet
looks exactly like a missing one. Payment transitions are guarded on
payment_status = 'pending'.
"""

import uuid
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_bet.domain.models import Bet

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    CAST(id AS TEXT) AS id, user_wallet_address, wallet_type,
    CAST(prediction_id AS TEXT) AS prediction_id, token_address, token_symbol,
    bet_direction, bet_amount, bet_currency,
    ai_prediction, ai_confidence, ai_price_target_24h, entry_price,
    odds, potential_payout,
    payment_status, payment_network, payment_tx_hash, payment_nonce,
    bet_status, settlement_price, settlement_time, settlement_tx_hash, payout_amount,
    created_at, expires_at, updated_at
"""

_INSERT_BET_SQL = text(f"""
    INSERT INTO bets
        (user_wallet_address, wallet_type, prediction_id, token_address, token_symbol,
         bet_direction, bet_amount, bet_currency,
         ai_prediction, ai_confidence, ai_price_target_24h, entry_price,
         odds, potential_payout, payment_status, payment_network, payment_nonce,
         bet_status, expires_at)
    VALUES
        (:wallet_address, :wallet_type, CAST(:prediction_id AS UUID), :token_address,
         :token_symbol, :direction, :amount, :currency,
         :ai_prediction, :ai_confidence, :ai_price_target_24h, :entry_price,
         :odds, :potential_payout, 'pending', :payment_network, :payment_nonce,
         'active', :expires_at)
    RETURNING {_SELECT_COLUMNS}
""")

_GET_BET_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bets
    WHERE id = CAST(:id AS UUID) AND user_wallet_address = :wallet_address
""")

_MARK_CONFIRMED_SQL = text(f"""
    UPDATE bets
    SET payment_status = 'confirmed', payment_tx_hash = :tx_hash, updated_at = NOW()
    WHERE id = CAST(:id AS UUID) AND payment_status = 'pending'
    RETURNING {_SELECT_COLUMNS}
""")

_MARK_FAILED_SQL = text(f"""
    UPDATE bets
    SET payment_status = 'failed', updated_at = NOW()
    WHERE id = CAST(:id AS UUID) AND payment_status = 'pending'
    RETURNING {_SELECT_COLUMNS}
""")

_LIST_BETS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bets
    WHERE user_wallet_address = :wallet_address
    ORDER BY created_at DESC
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_bet(row: Any) -> Bet:
    """Convert a DB result row to a Bet domain object."""
    return Bet(
        id=str(row.id),
        wallet_address=row.user_wallet_address,
        wallet_type=row.wallet_type,
        prediction_id=row.prediction_id,
        token_address=row.token_address,
        token_symbol=row.token_symbol,
        direction=row.bet_direction,
        amount=row.bet_amount,
        currency=row.bet_currency or "USDC",
        ai_prediction=row.ai_prediction,
        ai_confidence=row.ai_confidence,
        ai_price_target_24h=row.ai_price_target_24h,
        entry_price=row.entry_price,
        odds=row.odds,
        potential_payout=row.potential_payout,
        payment_status=row.payment_status,
        payment_network=row.payment_network,
        payment_tx_hash=row.payment_tx_hash,
        payment_nonce=row.payment_nonce,
        bet_status=row.bet_status,
        settlement_price=row.settlement_price,
        settlement_time=row.settlement_time,
        settlement_tx_hash=row.settlement_tx_hash,
        payout_amount=row.payout_amount,
        created_at=row.created_at,
        expires_at=row.expires_at,
        updated_at=row.updated_at,
    )


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except (ValueError, TypeError):
        return False
    return True


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class BetRepository:
    """Concrete implementation of BetRepositoryProtocol using raw SQL."""

    async def create(self, bet: Bet, db: AsyncSession) -> Bet:
        result = await db.execute(
            _INSERT_BET_SQL,
            {
                "wallet_address": bet.wallet_address,
                "wallet_type": bet.wallet_type,
                "prediction_id": bet.prediction_id,
                "token_address": bet.token_address,
                "token_symbol": bet.token_symbol,
                "direction": bet.direction,
                "amount": bet.amount,
                "currency": bet.currency,
                "ai_prediction": bet.ai_prediction,
                "ai_confidence": bet.ai_confidence,
                "ai_price_target_24h": bet.ai_price_target_24h,
                "entry_price": bet.entry_price,
                "odds": bet.odds,
                "potential_payout": bet.potential_payout,
                "payment_network": bet.payment_network,
                "payment_nonce": bet.payment_nonce,
                "expires_at": bet.expires_at,
            },
        )
        return _row_to_bet(result.fetchone())

    async def get_by_id_and_address(
        self, bet_id: str, wallet_address: str, db: AsyncSession
    ) -> Bet | None:
        if not _is_uuid(bet_id):
            return None
        result = await db.execute(
            _GET_BET_SQL, {"id": bet_id, "wallet_address": wallet_address}
        )
        row = result.fetchone()
        return _row_to_bet(row) if row else None

    async def mark_confirmed(
        self, bet_id: str, tx_hash: str | None, db: AsyncSession
    ) -> Bet | None:
        result = await db.execute(_MARK_CONFIRMED_SQL, {"id": bet_id, "tx_hash": tx_hash})
        row = result.fetchone()
        return _row_to_bet(row) if row else None

    async def mark_failed(self, bet_id: str, db: AsyncSession) -> Bet | None:
        result = await db.execute(_MARK_FAILED_SQL, {"id": bet_id})
        row = result.fetchone()
        return _row_to_bet(row) if row else None

    async def list_by_address(self, wallet_address: str, db: AsyncSession) -> list[Bet]:
        result = await db.execute(_LIST_BETS_SQL, {"wallet_address": wallet_address})
        return [_row_to_bet(row) for row in result.fetchall()]
