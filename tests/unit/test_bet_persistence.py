"""Unit tests for BetRepository and PredictionRepository using MagicMock AsyncSession."""

import uuid
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from src.pm_bet.infrastructure.persistence import BetRepository
from src.pm_prediction.infrastructure.persistence import PredictionRepository

_BET_ID = str(uuid.uuid4())


def _make_bet_row(**kwargs: Any) -> MagicMock:
    row = MagicMock()
    row.id = kwargs.get("id", _BET_ID)
    row.user_wallet_address = kwargs.get("user_wallet_address", "0xa11ce")
    row.wallet_type = "evm"
    row.prediction_id = str(uuid.uuid4())
    row.token_address = "solana/BONK"
    row.token_symbol = "BONK"
    row.bet_direction = "bullish"
    row.bet_amount = Decimal("10.000000")
    row.bet_currency = kwargs.get("bet_currency", "USDC")
    row.ai_prediction = "bullish"
    row.ai_confidence = 80
    row.ai_price_target_24h = None
    row.entry_price = Decimal("0.000021")
    row.odds = Decimal("1.66")
    row.potential_payout = Decimal("16.600000")
    row.payment_status = kwargs.get("payment_status", "pending")
    row.payment_network = "base"
    row.payment_tx_hash = kwargs.get("payment_tx_hash")
    row.payment_nonce = "0x" + "00" * 32
    row.bet_status = "active"
    row.settlement_price = None
    row.settlement_time = None
    row.settlement_tx_hash = None
    row.payout_amount = None
    row.created_at = datetime.now(UTC)
    row.expires_at = datetime.now(UTC) + timedelta(hours=24)
    row.updated_at = datetime.now(UTC)
    return row


def _db(fetchone: Any = None, fetchall: list[Any] | None = None) -> AsyncMock:
    result = MagicMock()
    result.fetchone.return_value = fetchone
    result.fetchall.return_value = fetchall or []
    db = AsyncMock()
    db.execute = AsyncMock(return_value=result)
    return db


class TestBetRepository:
    async def test_get_is_scoped_to_wallet(self) -> None:
        db = _db(_make_bet_row())
        bet = await BetRepository().get_by_id_and_address(_BET_ID, "0xa11ce", db)
        assert bet is not None
        assert bet.direction == "bullish"
        assert bet.amount == Decimal("10.000000")
        assert db.execute.call_args[0][1] == {"id": _BET_ID, "wallet_address": "0xa11ce"}
        assert "user_wallet_address = :wallet_address" in str(db.execute.call_args[0][0])

    async def test_get_with_non_uuid_skips_query(self) -> None:
        db = _db()
        assert await BetRepository().get_by_id_and_address("bet-1", "0xa11ce", db) is None
        db.execute.assert_not_called()

    async def test_missing_currency_defaults_to_usdc(self) -> None:
        bet = await BetRepository().get_by_id_and_address(
            _BET_ID, "0xa11ce", _db(_make_bet_row(bet_currency=None))
        )
        assert bet is not None and bet.currency == "USDC"

    async def test_mark_confirmed_guarded_on_pending(self) -> None:
        tx_hash = "0x" + "d4" * 32
        db = _db(_make_bet_row(payment_status="confirmed", payment_tx_hash=tx_hash))
        bet = await BetRepository().mark_confirmed(_BET_ID, tx_hash, db)
        assert bet is not None
        assert bet.payment_status == "confirmed"
        assert "payment_status = 'pending'" in str(db.execute.call_args[0][0])

    async def test_mark_failed_lost_race(self) -> None:
        assert await BetRepository().mark_failed(_BET_ID, _db(None)) is None

    async def test_list_by_address(self) -> None:
        rows = [_make_bet_row(id=str(uuid.uuid4())) for _ in range(2)]
        bets = await BetRepository().list_by_address("0xa11ce", _db(fetchall=rows))
        assert [b.id for b in bets] == [r.id for r in rows]


class TestPredictionRepository:
    def _row(self, **kwargs: Any) -> MagicMock:
        row = MagicMock()
        row.id = kwargs.get("id", str(uuid.uuid4()))
        row.token_address = "solana/BONK"
        row.prediction = kwargs.get("prediction", "bearish")
        row.confidence = kwargs.get("confidence", 70)
        row.price_target_24h = None
        row.current_price = kwargs.get("current_price", Decimal("0.00002"))
        row.created_at = datetime.now(UTC)
        return row

    async def test_get_by_id(self) -> None:
        snapshot = await PredictionRepository().get_by_id(str(uuid.uuid4()), _db(self._row()))
        assert snapshot is not None
        assert snapshot.prediction == "bearish"
        assert snapshot.confidence == 70
        assert snapshot.token_symbol == "BONK"

    async def test_nullable_columns_get_defaults(self) -> None:
        row = self._row(prediction=None, confidence=None, current_price=None)
        snapshot = await PredictionRepository().get_by_id(str(uuid.uuid4()), _db(row))
        assert snapshot is not None
        assert snapshot.prediction == "neutral"
        assert snapshot.confidence == 50
        assert snapshot.current_price == Decimal(0)

    async def test_non_uuid_is_missing(self) -> None:
        db = _db()
        assert await PredictionRepository().get_by_id("pred-1", db) is None
        db.execute.assert_not_called()
