"""Global enums — must match DB CHECK constraints exactly.

See alembic/versions for the CHECK constraints mirrored here.
"""

from enum import Enum


class WalletType(str, Enum):
    """Signature family of a wallet."""
    EVM = "evm"          # account-based, recoverable personal-message signatures
    SOLANA = "solana"    # public-key based, Ed25519 detached signatures


class QuoteStatus(str, Enum):
    QUOTED = "quoted"
    PAID = "paid"
    EXPIRED = "expired"


class QuoteDirection(str, Enum):
    UP = "Up"
    DOWN = "Down"


class OrderType(str, Enum):
    MARKET = "Market"
    LIMIT = "Limit"


class BetDirection(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"


class PaymentNetwork(str, Enum):
    BASE = "base"
    SOLANA = "solana"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    REFUNDED = "refunded"


class BetStatus(str, Enum):
    ACTIVE = "active"
    WON = "won"
    LOST = "lost"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class OrderStatus(str, Enum):
    PENDING = "pending"
    FILLED = "filled"
    CANCELLED = "cancelled"
