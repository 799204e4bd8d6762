"""Wallet session domain model — pure dataclass, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.pm_common.datetime_utils import is_past


@dataclass
class WalletSession:
    id: str
    wallet_address: str          # lowercase for evm, as given for solana
    wallet_type: str             # evm / solana
    challenge_message: str
    nonce: str
    expires_at: datetime
    signature: str | None = None
    is_verified: bool = False
    session_token: str | None = None
    created_at: datetime | None = None
    verified_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        return is_past(self.expires_at, now)
