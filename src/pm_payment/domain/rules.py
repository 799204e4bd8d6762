"""Pure payment rules: quote amount and transaction hash formats."""

import re
from decimal import Decimal

import base58

from src.pm_common.amounts import round_amount, to_decimal

_EVM_TX_HASH = re.compile(r"^0x[a-fA-F0-9]{64}$")
_SOLANA_SIGNATURE_BYTES = 64


def calculate_amount(shares: object, limit_price: object | None, default_price: object) -> Decimal:
    """amount = round(shares * (limit_price or default), 6), floored at 0."""
    price = to_decimal(default_price) if limit_price is None else to_decimal(limit_price)
    amount = round_amount(to_decimal(shares) * price)
    if amount < 0:
        return round_amount(0)
    return amount


def is_valid_tx_hash(tx_hash: str, network: str = "evm") -> bool:
    """Lexical format check only; no chain lookup.

    evm / base: 0x + 64 hex chars. solana: base58 of a 64-byte signature.
    """
    if not isinstance(tx_hash, str) or not tx_hash:
        return False
    if network == "solana":
        try:
            return len(base58.b58decode(tx_hash)) == _SOLANA_SIGNATURE_BYTES
        except ValueError:
            return False
    return _EVM_TX_HASH.fullmatch(tx_hash) is not None
