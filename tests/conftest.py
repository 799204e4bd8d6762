"""Shared test fixtures.

In-memory repositories follow the same compare-and-swap contract as the SQL
ones and yield to the event loop on every call, so concurrent service calls
interleave the way they would against PostgreSQL.
"""

import os

os.environ.setdefault("JWT_SECRET", "unit-test-secret-do-not-use-in-production")

import asyncio
import dataclasses
import uuid
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.pm_bet.domain.models import Bet
from src.pm_common.database import get_db_session
from src.pm_common.errors import QuoteAlreadyUsedError, TxHashAlreadyUsedError
from src.pm_order.domain.models import Order
from src.pm_payment.domain.models import PaymentQuote, QuoteTx
from src.pm_prediction.domain.models import PredictionSnapshot
from src.pm_wallet.domain.models import WalletSession


class InMemoryWalletSessionRepository:
    def __init__(self) -> None:
        self.rows: dict[str, WalletSession] = {}

    async def create(self, session: WalletSession, db: Any) -> WalletSession:
        await asyncio.sleep(0)
        stored = dataclasses.replace(
            session, id=str(uuid.uuid4()), created_at=datetime.now(UTC)
        )
        self.rows[stored.id] = stored
        return dataclasses.replace(stored)

    async def get_by_id(self, session_id: str, db: Any) -> WalletSession | None:
        await asyncio.sleep(0)
        row = self.rows.get(session_id)
        return dataclasses.replace(row) if row else None

    async def mark_verified(
        self,
        session_id: str,
        signature: str,
        session_token: str,
        verified_at: datetime,
        expires_at: datetime,
        db: Any,
    ) -> WalletSession | None:
        await asyncio.sleep(0)
        row = self.rows.get(session_id)
        if row is None or row.is_verified or row.expires_at < verified_at:
            return None
        row.is_verified = True
        row.signature = signature
        row.session_token = session_token
        row.verified_at = verified_at
        row.expires_at = expires_at
        return dataclasses.replace(row)


class InMemoryQuoteRepository:
    def __init__(self) -> None:
        self.rows: dict[str, PaymentQuote] = {}
        self.mark_paid_calls = 0

    async def create(self, quote: PaymentQuote, db: Any) -> PaymentQuote:
        await asyncio.sleep(0)
        stored = dataclasses.replace(quote, created_at=datetime.now(UTC))
        self.rows[stored.quote_id] = stored
        return dataclasses.replace(stored)

    async def get_by_quote_id(self, quote_id: str, db: Any) -> PaymentQuote | None:
        await asyncio.sleep(0)
        row = self.rows.get(quote_id)
        return dataclasses.replace(row) if row else None

    async def find_quote_id_by_tx_hash(
        self, tx_hash: str, db: Any, exclude_quote_id: str | None = None
    ) -> str | None:
        await asyncio.sleep(0)
        for row in self.rows.values():
            if row.tx_hash == tx_hash and row.quote_id != exclude_quote_id:
                return row.quote_id
        return None

    async def mark_paid(
        self, quote_id: str, tx_hash: str, now: datetime, db: Any
    ) -> PaymentQuote | None:
        await asyncio.sleep(0)
        self.mark_paid_calls += 1
        row = self.rows.get(quote_id)
        if row is None or row.status != "quoted" or row.deadline < now:
            return None
        if any(r.tx_hash == tx_hash for r in self.rows.values()):
            raise TxHashAlreadyUsedError(tx_hash)
        row.status = "paid"
        row.tx_hash = tx_hash
        return dataclasses.replace(row)

    async def mark_expired(self, quote_id: str, db: Any) -> bool:
        await asyncio.sleep(0)
        row = self.rows.get(quote_id)
        if row is None or row.status != "quoted":
            return False
        row.status = "expired"
        return True

    async def get_paid_by_tx_hash(self, tx_hash: str, db: Any) -> PaymentQuote | None:
        await asyncio.sleep(0)
        for row in self.rows.values():
            if row.tx_hash == tx_hash and row.status == "paid":
                return dataclasses.replace(row)
        return None


class InMemoryBetRepository:
    def __init__(self) -> None:
        self.rows: dict[str, Bet] = {}

    async def create(self, bet: Bet, db: Any) -> Bet:
        await asyncio.sleep(0)
        now = datetime.now(UTC)
        stored = dataclasses.replace(
            bet, id=str(uuid.uuid4()), created_at=now, updated_at=now
        )
        self.rows[stored.id] = stored
        return dataclasses.replace(stored)

    async def get_by_id_and_address(
        self, bet_id: str, wallet_address: str, db: Any
    ) -> Bet | None:
        await asyncio.sleep(0)
        row = self.rows.get(bet_id)
        if row is None or row.wallet_address != wallet_address:
            return None
        return dataclasses.replace(row)

    async def mark_confirmed(self, bet_id: str, tx_hash: str | None, db: Any) -> Bet | None:
        await asyncio.sleep(0)
        row = self.rows.get(bet_id)
        if row is None or row.payment_status != "pending":
            return None
        row.payment_status = "confirmed"
        row.payment_tx_hash = tx_hash
        return dataclasses.replace(row)

    async def mark_failed(self, bet_id: str, db: Any) -> Bet | None:
        await asyncio.sleep(0)
        row = self.rows.get(bet_id)
        if row is None or row.payment_status != "pending":
            return None
        row.payment_status = "failed"
        return dataclasses.replace(row)

    async def list_by_address(self, wallet_address: str, db: Any) -> list[Bet]:
        await asyncio.sleep(0)
        rows = [r for r in self.rows.values() if r.wallet_address == wallet_address]
        rows.sort(key=lambda r: r.created_at, reverse=True)
        return [dataclasses.replace(r) for r in rows]


class InMemoryOrderRepository:
    def __init__(self) -> None:
        self.rows: dict[str, Order] = {}

    async def create(self, order: Order, db: Any) -> Order:
        await asyncio.sleep(0)
        if any(o.quote_id == order.quote_id for o in self.rows.values()):
            raise QuoteAlreadyUsedError(order.quote_id)
        stored = dataclasses.replace(order, created_at=datetime.now(UTC))
        self.rows[stored.order_id] = stored
        return dataclasses.replace(stored)

    async def get_by_quote_id(self, quote_id: str, db: Any) -> Order | None:
        await asyncio.sleep(0)
        for order in self.rows.values():
            if order.quote_id == quote_id:
                return dataclasses.replace(order)
        return None

    async def list_by_wallet(
        self, wallet_address: str, market_id: str | None, db: Any
    ) -> list[Order]:
        await asyncio.sleep(0)
        return [
            dataclasses.replace(o) for o in self.rows.values()
            if o.wallet_address == wallet_address
            and (market_id is None or o.market_id == market_id)
        ]


class InMemoryPredictionRepository:
    def __init__(self, *snapshots: PredictionSnapshot) -> None:
        self.rows = {s.id: s for s in snapshots}

    async def get_by_id(self, prediction_id: str, db: Any) -> PredictionSnapshot | None:
        await asyncio.sleep(0)
        return self.rows.get(prediction_id)


def make_quote(**kwargs: Any) -> PaymentQuote:
    """A fresh quoted quote: 100 shares at 0.52, deadline ten minutes out."""
    defaults: dict[str, Any] = {
        "quote_id": f"quote-{uuid.uuid4().hex}",
        "market_id": "mkt-btc-100k",
        "direction": "Up",
        "order_type": "Limit",
        "limit_price": Decimal("0.52"),
        "shares": Decimal("100"),
        "token": "USDC",
        "amount": Decimal("52.000000"),
        "spender": "0xSpender",
        "deadline": datetime.now(UTC) + timedelta(minutes=10),
        "tx": QuoteTx(chain_id=1, from_address="0xUser", to="0xSpender", data="0x", value="0"),
    }
    defaults.update(kwargs)
    return PaymentQuote(**defaults)


def make_prediction(**kwargs: Any) -> PredictionSnapshot:
    defaults: dict[str, Any] = {
        "id": str(uuid.uuid4()),
        "token_address": "solana/BONK",
        "prediction": "bullish",
        "confidence": 80,
        "current_price": Decimal("0.000021"),
        "price_target_24h": Decimal("0.000025"),
        "created_at": datetime.now(UTC),
    }
    defaults.update(kwargs)
    return PredictionSnapshot(**defaults)


@pytest.fixture
def mock_db() -> AsyncMock:
    """Stand-in AsyncSession: commit / rollback are recorded, never executed."""
    return AsyncMock()


@pytest.fixture
def session_repo() -> InMemoryWalletSessionRepository:
    return InMemoryWalletSessionRepository()


@pytest.fixture
def quote_repo() -> InMemoryQuoteRepository:
    return InMemoryQuoteRepository()


@pytest.fixture
def bet_repo() -> InMemoryBetRepository:
    return InMemoryBetRepository()


@pytest.fixture
def order_repo() -> InMemoryOrderRepository:
    return InMemoryOrderRepository()


@pytest.fixture
def prediction() -> PredictionSnapshot:
    return make_prediction()


@pytest.fixture
def prediction_repo(prediction: PredictionSnapshot) -> InMemoryPredictionRepository:
    return InMemoryPredictionRepository(prediction)


@pytest.fixture
async def client(mock_db: AsyncMock) -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints (DB session stubbed)."""

    async def _db_override():  # type: ignore[no-untyped-def]
        yield mock_db

    app.dependency_overrides[get_db_session] = _db_override
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def quote_factory():  # type: ignore[no-untyped-def]
    return make_quote


@pytest.fixture
def prediction_factory():  # type: ignore[no-untyped-def]
    return make_prediction
