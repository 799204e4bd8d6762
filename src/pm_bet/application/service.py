"""Bet Lifecycle Manager.

prepare_bet → price a directional bet against an AI prediction snapshot,
              persist it as pending and hand back an x402 descriptor
confirm_bet → verify the client's payment proof and move payment_status
              pending → confirmed | failed, exactly once
get_my_bets / get_bet → caller-scoped reads

Settlement (won / lost) happens elsewhere and is not driven from here.
"""

import logging
import secrets
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_bet.application.schemas import (
    BetDetailResponse,
    BetDetails,
    BetView,
    ConfirmBetResponse,
    PrepareBetRequest,
    PrepareBetResponse,
    PredictionView,
)
from src.pm_bet.domain.models import Bet
from src.pm_bet.domain.odds import calculate_odds, potential_payout
from src.pm_bet.domain.repository import BetRepositoryProtocol
from src.pm_bet.infrastructure.persistence import BetRepository
from src.pm_common.amounts import round_amount, to_decimal
from src.pm_common.datetime_utils import utc_now
from src.pm_common.errors import (
    AppError,
    BetAlreadyProcessedError,
    BetAmountOutOfRangeError,
    BetNotFoundError,
    PaymentVerificationError,
    PersistenceError,
    PredictionNotFoundError,
)
from src.pm_gateway.auth.jwt_handler import WalletIdentity
from src.pm_payment.application.service import PaymentService
from src.pm_payment.infrastructure.x402 import PaymentRequired
from src.pm_prediction.domain.models import PredictionSnapshot
from src.pm_prediction.domain.repository import PredictionRepositoryProtocol
from src.pm_prediction.infrastructure.persistence import PredictionRepository

logger = logging.getLogger(__name__)


def generate_payment_nonce() -> str:
    """32 random bytes as 0x-hex, usable directly as an EIP-3009 bytes32 nonce."""
    return "0x" + secrets.token_hex(32)


def _optional_float(value: Decimal | None) -> float | None:
    return None if value is None else float(value)


def _iso(moment: datetime | None) -> str | None:
    return None if moment is None else moment.isoformat()


def _to_bet_view(bet: Bet) -> BetView:
    return BetView(
        id=bet.id,
        token_address=bet.token_address,
        token_symbol=bet.token_symbol,
        bet_direction=bet.direction,
        amount=float(bet.amount),
        currency=bet.currency,
        odds=float(bet.odds),
        potential_payout=float(bet.potential_payout),
        payment_status=bet.payment_status,
        payment_network=bet.payment_network,
        payment_tx_hash=bet.payment_tx_hash,
        bet_status=bet.bet_status,
        ai_prediction=bet.ai_prediction,
        ai_confidence=bet.ai_confidence,
        ai_price_target_24h=_optional_float(bet.ai_price_target_24h),
        entry_price=float(bet.entry_price),
        settlement_price=_optional_float(bet.settlement_price),
        payout_amount=_optional_float(bet.payout_amount),
        created_at=_iso(bet.created_at),
        expires_at=bet.expires_at.isoformat(),
    )


def _to_prediction_view(snapshot: PredictionSnapshot) -> PredictionView:
    return PredictionView(
        id=snapshot.id,
        token_address=snapshot.token_address,
        token_symbol=snapshot.token_symbol,
        prediction=snapshot.prediction,
        confidence=snapshot.confidence,
        price_target_24h=_optional_float(snapshot.price_target_24h),
        current_price=float(snapshot.current_price),
        created_at=_iso(snapshot.created_at),
    )


class BetService:
    def __init__(
        self,
        repo: BetRepositoryProtocol | None = None,
        predictions: PredictionRepositoryProtocol | None = None,
        payments: PaymentService | None = None,
    ) -> None:
        self._repo: BetRepositoryProtocol = repo or BetRepository()
        self._predictions: PredictionRepositoryProtocol = predictions or PredictionRepository()
        self._payments = payments or PaymentService()

    async def prepare_bet(
        self, db: AsyncSession, wallet: WalletIdentity, request: PrepareBetRequest
    ) -> tuple[PrepareBetResponse, PaymentRequired]:
        # Range check on the raw stake; rounding must not pull 100.0000004 into range
        minimum = to_decimal(settings.BET_MIN_AMOUNT)
        maximum = to_decimal(settings.BET_MAX_AMOUNT)
        raw_amount = to_decimal(request.amount)
        if raw_amount < minimum or raw_amount > maximum:
            raise BetAmountOutOfRangeError(request.amount, minimum, maximum)
        amount = round_amount(raw_amount)

        try:
            snapshot = await self._predictions.get_by_id(request.prediction_id, db)
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("prediction lookup failed: %s", request.prediction_id)
            raise PersistenceError("load prediction") from None
        if snapshot is None:
            raise PredictionNotFoundError(request.prediction_id)

        odds = calculate_odds(snapshot.confidence, request.bet_direction, snapshot.prediction)
        pending = Bet(
            id="",
            wallet_address=wallet.address,
            wallet_type=wallet.wallet_type,
            prediction_id=snapshot.id,
            token_address=request.token_address,
            token_symbol=snapshot.token_symbol,
            direction=request.bet_direction,
            amount=amount,
            ai_prediction=snapshot.prediction,
            ai_confidence=snapshot.confidence,
            ai_price_target_24h=snapshot.price_target_24h,
            entry_price=snapshot.current_price,
            odds=odds,
            potential_payout=potential_payout(amount, odds),
            payment_network=request.network,
            payment_nonce=generate_payment_nonce(),
            expires_at=utc_now() + timedelta(hours=settings.BET_SETTLEMENT_HOURS),
        )
        try:
            bet = await self._repo.create(pending, db)
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("bet insert failed wallet=%s", wallet.address)
            raise PersistenceError("create bet") from None

        payment_required = self._payments.create_payment_required(
            bet.id, bet.amount, bet.payment_network, bet.payment_nonce
        )
        logger.info("bet prepared bet_id=%s wallet=%s amount=%s odds=%s",
                    bet.id, bet.wallet_address, bet.amount, bet.odds)
        response = PrepareBetResponse(
            bet_id=bet.id,
            payment_required=payment_required.model_dump(by_alias=True),
            bet_details=BetDetails(
                token_address=bet.token_address,
                token_symbol=bet.token_symbol,
                bet_direction=bet.direction,
                amount=float(bet.amount),
                odds=float(bet.odds),
                potential_payout=float(bet.potential_payout),
                ai_prediction=bet.ai_prediction,
                ai_confidence=bet.ai_confidence,
                entry_price=float(bet.entry_price),
                expires_at=bet.expires_at.isoformat(),
            ),
        )
        return response, payment_required

    async def confirm_bet(
        self,
        db: AsyncSession,
        wallet: WalletIdentity,
        bet_id: str,
        payment_signature: str,
    ) -> ConfirmBetResponse:
        try:
            return await self._confirm(db, wallet, bet_id, payment_signature)
        except AppError:
            await db.rollback()
            raise
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("bet confirm failed bet_id=%s", bet_id)
            raise PersistenceError("confirm bet") from None

    async def _confirm(
        self,
        db: AsyncSession,
        wallet: WalletIdentity,
        bet_id: str,
        payment_signature: str,
    ) -> ConfirmBetResponse:
        bet = await self._repo.get_by_id_and_address(bet_id, wallet.address, db)
        if bet is None:
            raise BetNotFoundError(bet_id)
        if not bet.is_pending_payment:
            raise BetAlreadyProcessedError(bet_id, bet.payment_status)

        verification = self._payments.verify_payment(
            payment_signature, bet.payment_nonce, bet.amount, bet.payment_network
        )
        if not verification.is_valid:
            failed = await self._repo.mark_failed(bet_id, db)
            if failed is None:
                raise BetAlreadyProcessedError(bet_id, "processed")
            await db.commit()
            logger.info("bet payment failed bet_id=%s reason=%s",
                        bet_id, verification.invalid_reason)
            raise PaymentVerificationError(verification.invalid_reason or "rejected")

        confirmed = await self._repo.mark_confirmed(bet_id, verification.tx_hash, db)
        if confirmed is None:
            raise BetAlreadyProcessedError(bet_id, "processed")
        await db.commit()
        logger.info("bet payment confirmed bet_id=%s payer=%s tx_hash=%s",
                    bet_id, verification.payer, verification.tx_hash)
        return ConfirmBetResponse(
            id=confirmed.id,
            status=confirmed.bet_status,
            payment_status=confirmed.payment_status,
            tx_hash=confirmed.payment_tx_hash,
            potential_payout=float(confirmed.potential_payout),
            expires_at=confirmed.expires_at.isoformat(),
        )

    async def get_my_bets(self, db: AsyncSession, wallet: WalletIdentity) -> list[BetView]:
        try:
            bets = await self._repo.list_by_address(wallet.address, db)
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("bet list failed wallet=%s", wallet.address)
            raise PersistenceError("list bets") from None
        return [_to_bet_view(bet) for bet in bets]

    async def get_bet(
        self, db: AsyncSession, wallet: WalletIdentity, bet_id: str
    ) -> BetDetailResponse:
        try:
            bet = await self._repo.get_by_id_and_address(bet_id, wallet.address, db)
            snapshot = None
            if bet is not None and bet.prediction_id:
                snapshot = await self._predictions.get_by_id(bet.prediction_id, db)
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("bet lookup failed bet_id=%s", bet_id)
            raise PersistenceError("load bet") from None
        if bet is None:
            raise BetNotFoundError(bet_id)
        return BetDetailResponse(
            bet=_to_bet_view(bet),
            prediction=_to_prediction_view(snapshot) if snapshot else None,
        )
