"""Enum values must match the CHECK constraints in alembic/versions."""

from src.pm_common.enums import (
    BetDirection,
    BetStatus,
    OrderType,
    PaymentNetwork,
    PaymentStatus,
    QuoteDirection,
    QuoteStatus,
    WalletType,
)


def test_wallet_types() -> None:
    assert {w.value for w in WalletType} == {"evm", "solana"}


def test_quote_status() -> None:
    assert {s.value for s in QuoteStatus} == {"quoted", "paid", "expired"}


def test_quote_order_params() -> None:
    assert {d.value for d in QuoteDirection} == {"Up", "Down"}
    assert {t.value for t in OrderType} == {"Market", "Limit"}


def test_bet_enums() -> None:
    assert {d.value for d in BetDirection} == {"bullish", "bearish"}
    assert {n.value for n in PaymentNetwork} == {"base", "solana"}
    assert {s.value for s in PaymentStatus} == {
        "pending", "processing", "confirmed", "failed", "refunded",
    }
    assert {s.value for s in BetStatus} == {"active", "won", "lost", "cancelled", "expired"}


def test_str_enum_compares_to_plain_string() -> None:
    assert PaymentStatus.PENDING == "pending"
