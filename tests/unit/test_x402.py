"""x402 exact-scheme descriptors and payment proof verification."""

import base64
import json
import secrets
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import pytest
from eth_account import Account
from eth_account.messages import encode_typed_data
from solders.keypair import Keypair

from config.settings import settings
from src.pm_common.datetime_utils import to_unix
from src.pm_payment.application.service import PaymentService
from src.pm_payment.infrastructure.x402 import (
    PaymentProofError,
    X402Authorization,
    X402PaymentVerifier,
    build_transfer_typed_data,
    canonical_authorization_message,
    create_payment_required,
    decode_payment_payload,
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)
NOW_TS = to_unix(NOW)
AMOUNT = Decimal("10.5")
ATOMIC = 10_500_000


def _nonce() -> str:
    return "0x" + secrets.token_hex(32)


def _authorization(sender: str, network: str, nonce: str, **overrides: Any) -> dict[str, Any]:
    auth: dict[str, Any] = {
        "from": sender,
        "to": settings.X402_PAYEE_SOLANA if network == "solana" else settings.X402_PAYEE_BASE,
        "value": str(ATOMIC),
        "validAfter": str(NOW_TS - 10),
        "validBefore": str(NOW_TS + 300),
        "nonce": nonce,
    }
    auth.update(overrides)
    return auth


def _encode(network: str, signature: str, auth: dict[str, Any], **extra: Any) -> str:
    body: dict[str, Any] = {
        "x402Version": 1,
        "scheme": "exact",
        "network": network,
        "payload": {"signature": signature, "authorization": auth},
    }
    body.update(extra)
    return base64.b64encode(json.dumps(body).encode()).decode()


def _evm_payment(nonce: str, **overrides: Any) -> str:
    account = Account.create()
    auth = _authorization(account.address, "base", nonce, **overrides)
    typed = build_transfer_typed_data(X402Authorization.model_validate(auth))
    signed = Account.sign_message(encode_typed_data(full_message=typed), private_key=account.key)
    return _encode("base", "0x" + bytes(signed.signature).hex(), auth)


def _solana_payment(nonce: str, **overrides: Any) -> tuple[str, Keypair]:
    keypair = Keypair()
    auth = _authorization(str(keypair.pubkey()), "solana", nonce, **overrides)
    message = canonical_authorization_message(X402Authorization.model_validate(auth))
    return _encode("solana", str(keypair.sign_message(message)), auth), keypair


@pytest.fixture
def verifier() -> X402PaymentVerifier:
    return X402PaymentVerifier(clock=lambda: NOW)


class TestCreatePaymentRequired:
    def test_base_descriptor(self) -> None:
        nonce = _nonce()
        req = create_payment_required("bet-1", AMOUNT, "base", nonce, now=NOW)

        assert req.scheme == "exact"
        assert req.max_amount_required == str(ATOMIC)
        assert req.amount == 10.5
        assert req.pay_to == settings.X402_PAYEE_BASE
        assert req.asset == settings.X402_BASE_USDC_CONTRACT
        assert req.resource == "/api/v1/bets/bet-1"
        assert req.valid_after == NOW_TS
        assert req.valid_before == NOW_TS + settings.X402_PAYMENT_WINDOW_SECONDS
        assert req.nonce == nonce
        assert req.extra["chainId"] == settings.X402_BASE_CHAIN_ID
        assert req.extra["decimals"] == 6

    def test_solana_descriptor(self) -> None:
        req = create_payment_required("bet-2", Decimal("1"), "solana", _nonce(), now=NOW)
        assert req.pay_to == settings.X402_PAYEE_SOLANA
        assert req.asset == settings.X402_SOLANA_USDC_MINT
        assert "chainId" not in req.extra

    def test_header_is_base64_json_with_wire_names(self) -> None:
        req = create_payment_required("bet-1", AMOUNT, "base", _nonce(), now=NOW)
        decoded = json.loads(base64.b64decode(req.to_header()))
        assert decoded["maxAmountRequired"] == str(ATOMIC)
        assert decoded["payTo"] == settings.X402_PAYEE_BASE
        assert decoded["x402Version"] == 1


class TestDecodePayload:
    def test_accepts_raw_json(self) -> None:
        nonce = _nonce()
        raw = base64.b64decode(_evm_payment(nonce)).decode()
        assert decode_payment_payload(raw).payload.authorization.nonce == nonce

    @pytest.mark.parametrize("value", ["", "   ", "%%%not-base64%%%", base64.b64encode(b"[]").decode()])
    def test_rejects_garbage(self, value: str) -> None:
        with pytest.raises(PaymentProofError):
            decode_payment_payload(value)


class TestEvmVerification:
    def test_valid_payment(self, verifier: X402PaymentVerifier) -> None:
        nonce = _nonce()
        result = verifier.verify(_evm_payment(nonce), nonce, AMOUNT, "base")
        assert result.is_valid, result.invalid_reason
        assert result.payer is not None and result.payer.startswith("0x")

    def test_nonce_compared_case_insensitively(self, verifier: X402PaymentVerifier) -> None:
        nonce = _nonce()
        result = verifier.verify(_evm_payment(nonce), nonce.upper().replace("0X", "0x"), AMOUNT, "base")
        assert result.is_valid

    def test_overpayment_is_accepted(self, verifier: X402PaymentVerifier) -> None:
        nonce = _nonce()
        result = verifier.verify(_evm_payment(nonce, value=str(ATOMIC + 1)), nonce, AMOUNT, "base")
        assert result.is_valid

    def test_tx_hash_is_passed_through(self, verifier: X402PaymentVerifier) -> None:
        nonce = _nonce()
        body = json.loads(base64.b64decode(_evm_payment(nonce)))
        body["txHash"] = "0x" + "ef" * 32
        payment = base64.b64encode(json.dumps(body).encode()).decode()
        result = verifier.verify(payment, nonce, AMOUNT, "base")
        assert result.is_valid
        assert result.tx_hash == "0x" + "ef" * 32

    def test_bad_tx_hash_rejected(self, verifier: X402PaymentVerifier) -> None:
        nonce = _nonce()
        body = json.loads(base64.b64decode(_evm_payment(nonce)))
        body["txHash"] = "0x1234"
        payment = base64.b64encode(json.dumps(body).encode()).decode()
        result = verifier.verify(payment, nonce, AMOUNT, "base")
        assert not result.is_valid
        assert "txHash" in (result.invalid_reason or "")

    def test_wrong_nonce(self, verifier: X402PaymentVerifier) -> None:
        result = verifier.verify(_evm_payment(_nonce()), _nonce(), AMOUNT, "base")
        assert not result.is_valid
        assert result.invalid_reason == "nonce mismatch"

    def test_wrong_payee(self, verifier: X402PaymentVerifier) -> None:
        nonce = _nonce()
        other = Account.create().address
        result = verifier.verify(_evm_payment(nonce, to=other), nonce, AMOUNT, "base")
        assert not result.is_valid
        assert result.invalid_reason == "authorization destination mismatch"

    def test_underpayment(self, verifier: X402PaymentVerifier) -> None:
        nonce = _nonce()
        result = verifier.verify(_evm_payment(nonce, value=str(ATOMIC - 1)), nonce, AMOUNT, "base")
        assert not result.is_valid
        assert result.invalid_reason == "authorization value below required amount"

    def test_expired_window(self, verifier: X402PaymentVerifier) -> None:
        nonce = _nonce()
        result = verifier.verify(_evm_payment(nonce, validBefore=str(NOW_TS)), nonce, AMOUNT, "base")
        assert not result.is_valid
        assert result.invalid_reason == "authorization window has expired"

    def test_not_yet_valid(self, verifier: X402PaymentVerifier) -> None:
        nonce = _nonce()
        result = verifier.verify(_evm_payment(nonce, validAfter=str(NOW_TS + 60)), nonce, AMOUNT, "base")
        assert not result.is_valid
        assert result.invalid_reason == "authorization not yet valid"

    def test_tampered_authorization(self, verifier: X402PaymentVerifier) -> None:
        nonce = _nonce()
        account = Account.create()
        signed_auth = _authorization(account.address, "base", nonce)
        typed = build_transfer_typed_data(X402Authorization.model_validate(signed_auth))
        signed = Account.sign_message(encode_typed_data(full_message=typed), private_key=account.key)
        tampered = dict(signed_auth, value=str(ATOMIC * 10))
        payment = _encode("base", "0x" + bytes(signed.signature).hex(), tampered)

        result = verifier.verify(payment, nonce, AMOUNT, "base")
        assert not result.is_valid
        assert result.invalid_reason == "signature does not match authorization originator"

    def test_garbage_signature(self, verifier: X402PaymentVerifier) -> None:
        nonce = _nonce()
        auth = _authorization(Account.create().address, "base", nonce)
        result = verifier.verify(_encode("base", "0x1234", auth), nonce, AMOUNT, "base")
        assert not result.is_valid

    def test_network_mismatch(self, verifier: X402PaymentVerifier) -> None:
        nonce = _nonce()
        result = verifier.verify(_evm_payment(nonce), nonce, AMOUNT, "solana")
        assert not result.is_valid
        assert result.invalid_reason == "payment network mismatch"

    def test_unsupported_scheme(self, verifier: X402PaymentVerifier) -> None:
        nonce = _nonce()
        body = json.loads(base64.b64decode(_evm_payment(nonce)))
        body["scheme"] = "upto"
        payment = base64.b64encode(json.dumps(body).encode()).decode()
        assert not verifier.verify(payment, nonce, AMOUNT, "base").is_valid

    def test_non_hex_nonce_never_raises(self, verifier: X402PaymentVerifier) -> None:
        auth = _authorization(Account.create().address, "base", "bet-nonce")
        result = verifier.verify(_encode("base", "0x" + "00" * 65, auth), "bet-nonce", AMOUNT, "base")
        assert not result.is_valid

    def test_malformed_payload(self, verifier: X402PaymentVerifier) -> None:
        result = verifier.verify("not a payment", _nonce(), AMOUNT, "base")
        assert not result.is_valid
        assert result.invalid_reason is not None


class TestSolanaVerification:
    def test_valid_payment(self, verifier: X402PaymentVerifier) -> None:
        nonce = _nonce()
        payment, keypair = _solana_payment(nonce)
        result = verifier.verify(payment, nonce, AMOUNT, "solana")
        assert result.is_valid, result.invalid_reason
        assert result.payer == str(keypair.pubkey())

    def test_signature_by_other_key(self, verifier: X402PaymentVerifier) -> None:
        nonce = _nonce()
        auth = _authorization(str(Keypair().pubkey()), "solana", nonce)
        message = canonical_authorization_message(X402Authorization.model_validate(auth))
        payment = _encode("solana", str(Keypair().sign_message(message)), auth)

        result = verifier.verify(payment, nonce, AMOUNT, "solana")
        assert not result.is_valid
        assert result.invalid_reason == "signature does not match authorization originator"

    def test_wrong_payee(self, verifier: X402PaymentVerifier) -> None:
        nonce = _nonce()
        payment, _ = _solana_payment(nonce, to=str(Keypair().pubkey()))
        result = verifier.verify(payment, nonce, AMOUNT, "solana")
        assert not result.is_valid

    def test_undecodable_signature(self, verifier: X402PaymentVerifier) -> None:
        nonce = _nonce()
        auth = _authorization(str(Keypair().pubkey()), "solana", nonce)
        result = verifier.verify(_encode("solana", "0OIl", auth), nonce, AMOUNT, "solana")
        assert not result.is_valid
        assert result.invalid_reason == "undecodable solana signature"


class TestServiceDelegation:
    def test_verify_payment_uses_injected_verifier(self, verifier: X402PaymentVerifier) -> None:
        svc = PaymentService(verifier=verifier)
        nonce = _nonce()
        assert svc.verify_payment(_evm_payment(nonce), nonce, AMOUNT, "base").is_valid

    def test_create_payment_required(self) -> None:
        req = PaymentService().create_payment_required("bet-9", AMOUNT, "base", _nonce())
        assert req.resource == "/api/v1/bets/bet-9"
