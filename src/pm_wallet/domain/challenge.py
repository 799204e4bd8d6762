"""Challenge text and address normalization for the wallet login handshake."""

import secrets

from src.pm_common.enums import WalletType

CHALLENGE_BRAND = "Crux Trade"


def normalize_address(address: str, wallet_type: str) -> str:
    """EVM hex addresses compare case-insensitively; base58 keys do not."""
    address = address.strip()
    if wallet_type == WalletType.EVM.value:
        return address.lower()
    return address


def generate_nonce() -> str:
    """128-bit random nonce, hex encoded."""
    return secrets.token_hex(16)


def build_challenge(address: str, nonce: str, issued_at: str) -> str:
    """Deterministic challenge binding the address, the nonce and the issue time."""
    return (
        f"{CHALLENGE_BRAND} Authentication\n"
        f"\n"
        f"Wallet: {address}\n"
        f"Nonce: {nonce}\n"
        f"Timestamp: {issued_at}\n"
        f"\n"
        f"Sign this message to authenticate with {CHALLENGE_BRAND}.\n"
        f"This request will not trigger any blockchain transaction."
    )
