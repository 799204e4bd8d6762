"""Order domain model — pure dataclass, no SQLAlchemy dependency."""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Order:
    order_id: str
    wallet_address: str
    quote_id: str  # one order per paid quote
    market_id: str
    direction: str  # Up / Down
    order_type: str  # Market / Limit
    shares: Decimal
    tx_hash: str  # payment tx hash of the quote
    limit_price: Decimal | None = None
    status: str = "pending"
    filled_price: Decimal | None = None
    created_at: datetime | None = None
