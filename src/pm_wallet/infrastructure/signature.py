"""Wallet signature verification for the two supported signature families.

evm:    EIP-191 personal_sign. The signer is recovered from (message, signature)
        and compared case-insensitively with the claimed address.
solana: Ed25519 detached signature. The signature is base58 text, the claimed
        address is the base58 public key, the signed bytes are the UTF-8
        challenge text.

Verifiers never raise: any decoding or crypto error is a failed verification.
"""

import logging
from typing import Protocol

import base58
from eth_account import Account
from eth_account.messages import encode_defunct
from solders.pubkey import Pubkey
from solders.signature import Signature

from src.pm_common.enums import WalletType

logger = logging.getLogger(__name__)


class SignatureVerifier(Protocol):
    def verify(self, address: str, message: str, signature: str) -> bool: ...


class EvmSignatureVerifier:
    def verify(self, address: str, message: str, signature: str) -> bool:
        try:
            recovered = Account.recover_message(
                encode_defunct(text=message), signature=signature
            )
        except Exception as exc:  # eth_account raises a wide range of decode errors
            logger.debug("evm signature recovery failed: %s", exc)
            return False
        return str(recovered).lower() == address.lower()


class SolanaSignatureVerifier:
    def verify(self, address: str, message: str, signature: str) -> bool:
        try:
            signature_bytes = base58.b58decode(signature)
            sig = Signature.from_bytes(signature_bytes)
            pubkey = Pubkey.from_string(address)
            return bool(sig.verify(pubkey, message.encode("utf-8")))
        except Exception as exc:  # bad base58, wrong length, off-curve key
            logger.debug("solana signature verification failed: %s", exc)
            return False


class SignatureVerifierRegistry:
    """Dispatches to the verifier registered for a wallet type."""

    def __init__(self, verifiers: dict[str, SignatureVerifier] | None = None) -> None:
        self._verifiers: dict[str, SignatureVerifier] = verifiers or {
            WalletType.EVM.value: EvmSignatureVerifier(),
            WalletType.SOLANA.value: SolanaSignatureVerifier(),
        }

    def verify(self, wallet_type: str, address: str, message: str, signature: str) -> bool:
        verifier = self._verifiers.get(wallet_type)
        if verifier is None:
            logger.warning("no signature verifier for wallet type %s", wallet_type)
            return False
        try:
            return verifier.verify(address, message, signature)
        except Exception:
            logger.exception("signature verifier for %s raised", wallet_type)
            return False
