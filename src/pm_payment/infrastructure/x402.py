"""x402 "exact" scheme: payment-required descriptors and payment proof checks.

Bets are paid by a signed USDC transfer authorization that the client
builds from the descriptor and sends back base64-encoded. Two networks:

base:   EIP-3009 TransferWithAuthorization, signed as EIP-712 typed data
        against the USDC token domain. The payer is recovered from the
        signature and must equal authorization.from.
solana: Ed25519 detached signature by the ``from`` public key over the
        canonical JSON of the authorization (sorted keys, no spaces).

Both networks enforce the same fields: payee, value >= required atomic
amount, validity window and the bet's single-use nonce. Verification never
raises; failures come back as PaymentVerification(is_valid=False, reason).
"""

import base64
import binascii
import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

import base58
from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_utils import to_checksum_address
from hexbytes import HexBytes
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from solders.pubkey import Pubkey
from solders.signature import Signature

from config.settings import settings
from src.pm_common.amounts import round_amount, to_atomic_units
from src.pm_common.datetime_utils import to_unix, utc_now
from src.pm_common.enums import PaymentNetwork
from src.pm_payment.domain.models import PaymentVerification
from src.pm_payment.domain.rules import is_valid_tx_hash

logger = logging.getLogger(__name__)

X402_VERSION = 1
X402_SCHEME = "exact"
USDC_DOMAIN_NAME = "USD Coin"
USDC_DOMAIN_VERSION = "2"
_NONCE_BYTES = 32


# ---------------------------------------------------------------------------
# Wire models
# ---------------------------------------------------------------------------


class PaymentRequired(BaseModel):
    """Descriptor sent with HTTP 402 and in the X-Payment-Required header."""

    model_config = ConfigDict(populate_by_name=True)

    x402_version: int = Field(default=X402_VERSION, alias="x402Version")
    scheme: str = X402_SCHEME
    network: str
    max_amount_required: str = Field(alias="maxAmountRequired")
    amount: float
    currency: str = "USDC"
    pay_to: str = Field(alias="payTo")
    asset: str
    resource: str
    description: str
    valid_after: int = Field(alias="validAfter")
    valid_before: int = Field(alias="validBefore")
    nonce: str
    extra: dict[str, Any] = Field(default_factory=dict)

    def to_header(self) -> str:
        raw = json.dumps(self.model_dump(by_alias=True), separators=(",", ":"))
        return base64.b64encode(raw.encode("utf-8")).decode("ascii")


class X402Authorization(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    from_: str = Field(alias="from")
    to: str
    value: str
    valid_after: str = Field(alias="validAfter")
    valid_before: str = Field(alias="validBefore")
    nonce: str


class X402ExactPayload(BaseModel):
    signature: str
    authorization: X402Authorization


class X402PaymentPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    x402_version: int = Field(default=X402_VERSION, alias="x402Version")
    scheme: str = X402_SCHEME
    network: str
    payload: X402ExactPayload
    tx_hash: str | None = Field(default=None, alias="txHash")


class PaymentProofError(ValueError):
    """Internal signal carrying the rejection reason."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def payee_for(network: str) -> str:
    if network == PaymentNetwork.SOLANA.value:
        return settings.X402_PAYEE_SOLANA
    return settings.X402_PAYEE_BASE


def asset_for(network: str) -> str:
    if network == PaymentNetwork.SOLANA.value:
        return settings.X402_SOLANA_USDC_MINT
    return settings.X402_BASE_USDC_CONTRACT


def decode_payment_payload(payment_signature: str) -> X402PaymentPayload:
    """Accept base64 JSON (the X-PAYMENT header form) or raw JSON text."""
    text_value = (payment_signature or "").strip()
    if not text_value:
        raise PaymentProofError("empty payment payload")
    if not text_value.startswith("{"):
        try:
            padded = text_value + "=" * (-len(text_value) % 4)
            text_value = base64.b64decode(padded, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise PaymentProofError("payment payload is not base64 JSON") from exc
    try:
        return X402PaymentPayload.model_validate_json(text_value)
    except PydanticValidationError as exc:
        logger.debug("x402 payload validation failed: %s", exc)
        raise PaymentProofError("malformed payment payload") from exc


def build_transfer_typed_data(authorization: X402Authorization) -> dict[str, Any]:
    """EIP-712 TransferWithAuthorization typed data against the USDC domain."""
    try:
        nonce_bytes = HexBytes(authorization.nonce)
    except (ValueError, TypeError) as exc:
        raise PaymentProofError("authorization nonce is not hex") from exc
    if len(nonce_bytes) != _NONCE_BYTES:
        raise PaymentProofError("authorization nonce must be 32 bytes")
    return {
        "types": {
            "EIP712Domain": [
                {"name": "name", "type": "string"},
                {"name": "version", "type": "string"},
                {"name": "chainId", "type": "uint256"},
                {"name": "verifyingContract", "type": "address"},
            ],
            "TransferWithAuthorization": [
                {"name": "from", "type": "address"},
                {"name": "to", "type": "address"},
                {"name": "value", "type": "uint256"},
                {"name": "validAfter", "type": "uint256"},
                {"name": "validBefore", "type": "uint256"},
                {"name": "nonce", "type": "bytes32"},
            ],
        },
        "primaryType": "TransferWithAuthorization",
        "domain": {
            "name": USDC_DOMAIN_NAME,
            "version": USDC_DOMAIN_VERSION,
            "chainId": settings.X402_BASE_CHAIN_ID,
            "verifyingContract": to_checksum_address(settings.X402_BASE_USDC_CONTRACT),
        },
        "message": {
            "from": to_checksum_address(authorization.from_),
            "to": to_checksum_address(authorization.to),
            "value": int(authorization.value),
            "validAfter": int(authorization.valid_after),
            "validBefore": int(authorization.valid_before),
            "nonce": bytes(nonce_bytes),
        },
    }


def canonical_authorization_message(authorization: X402Authorization) -> bytes:
    """Bytes a Solana wallet signs for an authorization."""
    body = authorization.model_dump(by_alias=True)
    return json.dumps(body, sort_keys=True, separators=(",", ":")).encode("utf-8")


def _recover_evm_payer(payload: X402ExactPayload) -> str:
    try:
        typed_data = build_transfer_typed_data(payload.authorization)
        signable = encode_typed_data(full_message=typed_data)
        recovered = Account.recover_message(signable, signature=payload.signature)
    except PaymentProofError:
        raise
    except Exception as exc:  # eth_account raises many exception types
        raise PaymentProofError("unable to recover signer from signature") from exc
    return str(recovered)


def _check_solana_signature(payload: X402ExactPayload) -> None:
    try:
        signature = Signature.from_bytes(base58.b58decode(payload.signature))
        pubkey = Pubkey.from_string(payload.authorization.from_)
        valid = signature.verify(pubkey, canonical_authorization_message(payload.authorization))
    except Exception as exc:  # bad base58, wrong length, off-curve key
        raise PaymentProofError("undecodable solana signature") from exc
    if not valid:
        raise PaymentProofError("signature does not match authorization originator")


def _same_address(network: str, left: str, right: str) -> bool:
    if network == PaymentNetwork.SOLANA.value:
        return left == right
    return left.lower() == right.lower()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def create_payment_required(
    bet_id: str,
    amount: Decimal,
    network: str,
    nonce: str,
    now: datetime | None = None,
) -> PaymentRequired:
    issued = now or utc_now()
    valid_before = issued + timedelta(seconds=settings.X402_PAYMENT_WINDOW_SECONDS)
    extra: dict[str, Any] = {"decimals": 6}
    if network == PaymentNetwork.BASE.value:
        extra.update(
            name=USDC_DOMAIN_NAME,
            version=USDC_DOMAIN_VERSION,
            chainId=settings.X402_BASE_CHAIN_ID,
        )
    return PaymentRequired(
        network=network,
        max_amount_required=str(to_atomic_units(amount)),
        amount=float(round_amount(amount)),
        pay_to=payee_for(network),
        asset=asset_for(network),
        resource=f"/api/v1/bets/{bet_id}",
        description=f"{settings.APP_NAME} bet {bet_id}",
        valid_after=to_unix(issued),
        valid_before=to_unix(valid_before),
        nonce=nonce,
        extra=extra,
    )


class X402PaymentVerifier:
    """Checks an x402 payment payload against a bet's nonce, amount and network."""

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock

    def verify(
        self, payment_signature: str, nonce: str, amount: Decimal, network: str
    ) -> PaymentVerification:
        try:
            return self._verify(payment_signature, nonce, amount, network)
        except PaymentProofError as exc:
            logger.info("x402 payment rejected network=%s reason=%s", network, exc)
            return PaymentVerification(is_valid=False, invalid_reason=str(exc))

    def _verify(
        self, payment_signature: str, nonce: str, amount: Decimal, network: str
    ) -> PaymentVerification:
        proof = decode_payment_payload(payment_signature)
        if proof.scheme != X402_SCHEME:
            raise PaymentProofError(f"unsupported scheme {proof.scheme}")
        if proof.network != network:
            raise PaymentProofError("payment network mismatch")

        authorization = proof.payload.authorization
        if not nonce or authorization.nonce.lower() != nonce.lower():
            raise PaymentProofError("nonce mismatch")
        if not _same_address(network, authorization.to, payee_for(network)):
            raise PaymentProofError("authorization destination mismatch")

        try:
            value = int(authorization.value)
            valid_after = int(authorization.valid_after)
            valid_before = int(authorization.valid_before)
        except ValueError as exc:
            raise PaymentProofError("non-integer authorization field") from exc
        if value < to_atomic_units(amount):
            raise PaymentProofError("authorization value below required amount")
        now_ts = to_unix(self._clock())
        if valid_after > now_ts:
            raise PaymentProofError("authorization not yet valid")
        if valid_before <= now_ts:
            raise PaymentProofError("authorization window has expired")

        if network == PaymentNetwork.SOLANA.value:
            _check_solana_signature(proof.payload)
        else:
            payer = _recover_evm_payer(proof.payload)
            if payer.lower() != authorization.from_.lower():
                raise PaymentProofError("signature does not match authorization originator")

        tx_hash = proof.tx_hash
        if tx_hash is not None and not is_valid_tx_hash(tx_hash, network):
            raise PaymentProofError("invalid txHash format")

        return PaymentVerification(is_valid=True, payer=authorization.from_, tx_hash=tx_hash)
