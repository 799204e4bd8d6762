"""Payment domain models — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.pm_common.datetime_utils import is_past


@dataclass
class QuoteTx:
    """Pre-filled unsigned transaction template returned with a quote."""

    chain_id: int
    from_address: str
    to: str
    data: str
    value: str


@dataclass
class PaymentQuote:
    quote_id: str
    market_id: str
    direction: str               # Up / Down
    order_type: str              # Market / Limit
    shares: Decimal
    token: str
    amount: Decimal              # 6 dp, >= 0
    spender: str
    deadline: datetime
    tx: QuoteTx
    status: str = "quoted"       # quoted / paid / expired
    user_id: str | None = None   # owning wallet address, when the caller is signed in
    limit_price: Decimal | None = None
    tx_hash: str | None = None
    created_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        return is_past(self.deadline, now)

    @property
    def is_paid(self) -> bool:
        return self.status == "paid"


@dataclass(frozen=True)
class PaidPayment:
    """A quote confirmed with a transaction hash."""

    quote_id: str
    token: str
    amount: Decimal
    spender: str
    deadline: datetime
    tx_hash: str
    market_id: str = ""
    direction: str = ""
    order_type: str = ""
    shares: Decimal = Decimal(0)
    limit_price: Decimal | None = None
    owner: str | None = None


@dataclass(frozen=True)
class PaymentVerification:
    """Outcome of checking a client-supplied x402 payment proof."""

    is_valid: bool
    payer: str | None = None
    tx_hash: str | None = None
    invalid_reason: str | None = None
