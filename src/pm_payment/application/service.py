"""Payment Quote Engine plus the x402 entry points used by bets.

create_quote    → price a market order and persist a quoted obligation
confirm_payment → reconcile a quote against one client tx hash, exactly once
assert_paid     → look up a confirmed payment by tx hash
create_payment_required / verify_payment → x402 descriptor and proof check

confirm_payment check order (first match wins):
  1. unknown quote                       → QuoteNotFoundError
  2. already paid: same hash             → idempotent success
                   different hash        → QuoteAlreadyPaidError
  3. deadline passed                     → mark expired, QuoteExpiredError
  4. malformed hash                      → InvalidTxHashError (no write)
  5. hash on another quote               → TxHashAlreadyUsedError
  6. CAS quoted → paid
"""

import logging
import uuid
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_common.amounts import to_decimal
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import QuoteStatus
from src.pm_common.errors import (
    AppError,
    InvalidTxHashError,
    PaymentNotConfirmedError,
    PersistenceError,
    QuoteAlreadyPaidError,
    QuoteExpiredError,
    QuoteNotFoundError,
    TxHashAlreadyUsedError,
)
from src.pm_payment.application.schemas import (
    ConfirmPaymentResponse,
    QuoteRequest,
    QuoteResponse,
    UnsignedTx,
)
from src.pm_payment.domain.models import PaidPayment, PaymentQuote, PaymentVerification, QuoteTx
from src.pm_payment.domain.repository import PaymentQuoteRepositoryProtocol
from src.pm_payment.domain.rules import calculate_amount, is_valid_tx_hash
from src.pm_payment.infrastructure.persistence import PaymentQuoteRepository
from src.pm_payment.infrastructure.x402 import (
    PaymentRequired,
    X402PaymentVerifier,
    create_payment_required,
)

logger = logging.getLogger(__name__)


def new_quote_id() -> str:
    return f"quote-{uuid.uuid4().hex}"


def build_quote_tx(from_address: str | None = None) -> QuoteTx:
    """Pre-filled transaction template from configuration."""
    return QuoteTx(
        chain_id=settings.X402_CHAIN_ID,
        from_address=from_address or settings.X402_DEFAULT_FROM,
        to=settings.X402_TX_TO or settings.X402_SPENDER,
        data=settings.X402_TX_DATA,
        value=settings.X402_TX_VALUE,
    )


def _to_paid_payment(quote: PaymentQuote) -> PaidPayment:
    return PaidPayment(
        quote_id=quote.quote_id,
        token=quote.token,
        amount=quote.amount,
        spender=quote.spender,
        deadline=quote.deadline,
        tx_hash=quote.tx_hash or "",
        market_id=quote.market_id,
        direction=quote.direction,
        order_type=quote.order_type,
        shares=quote.shares,
        limit_price=quote.limit_price,
        owner=quote.user_id,
    )


def _paid_response(quote: PaymentQuote) -> ConfirmPaymentResponse:
    return ConfirmPaymentResponse(status=QuoteStatus.PAID.value, tx_hash=quote.tx_hash or "")


class PaymentService:
    def __init__(
        self,
        repo: PaymentQuoteRepositoryProtocol | None = None,
        verifier: X402PaymentVerifier | None = None,
    ) -> None:
        self._repo: PaymentQuoteRepositoryProtocol = repo or PaymentQuoteRepository()
        self._verifier = verifier or X402PaymentVerifier()

    # ------------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------------

    async def create_quote(
        self,
        db: AsyncSession,
        request: QuoteRequest,
        wallet_address: str | None = None,
        now: datetime | None = None,
    ) -> QuoteResponse:
        issued = now or utc_now()
        limit_price = None if request.limit_price is None else to_decimal(request.limit_price)
        pending = PaymentQuote(
            quote_id=new_quote_id(),
            user_id=wallet_address,
            market_id=request.market_id,
            direction=request.direction,
            order_type=request.order_type,
            limit_price=limit_price,
            shares=to_decimal(request.shares),
            token=request.token,
            amount=calculate_amount(request.shares, limit_price, settings.X402_DEFAULT_PRICE),
            spender=settings.X402_SPENDER,
            deadline=issued + timedelta(seconds=settings.X402_QUOTE_TTL_SECONDS),
            tx=build_quote_tx(wallet_address),
        )
        try:
            quote = await self._repo.create(pending, db)
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("quote insert failed market=%s", request.market_id)
            raise PersistenceError("create quote") from None

        logger.info("quote created quote_id=%s amount=%s deadline=%s",
                    quote.quote_id, quote.amount, quote.deadline.isoformat())
        return QuoteResponse(
            quote_id=quote.quote_id,
            token=quote.token,
            amount=float(quote.amount),
            spender=quote.spender,
            deadline=quote.deadline.isoformat(),
            unsigned_tx=UnsignedTx(
                chain_id=quote.tx.chain_id,
                from_=quote.tx.from_address,
                to=quote.tx.to,
                data=quote.tx.data,
                value=quote.tx.value,
            ),
        )

    async def confirm_payment(
        self, db: AsyncSession, quote_id: str, tx_hash: str
    ) -> ConfirmPaymentResponse:
        tx_hash = tx_hash.strip()
        try:
            return await self._confirm(db, quote_id, tx_hash)
        except AppError:
            await db.rollback()
            raise
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("quote confirm failed quote_id=%s", quote_id)
            raise PersistenceError("confirm payment") from None

    async def _confirm(
        self, db: AsyncSession, quote_id: str, tx_hash: str
    ) -> ConfirmPaymentResponse:
        quote = await self._repo.get_by_quote_id(quote_id, db)
        if quote is None:
            raise QuoteNotFoundError(quote_id)

        if quote.is_paid:
            return self._replay(quote, tx_hash)

        now = utc_now()
        if quote.status == QuoteStatus.EXPIRED.value or quote.is_expired(now):
            await self._expire(db, quote)
            raise QuoteExpiredError(quote_id)

        if not is_valid_tx_hash(tx_hash):
            raise InvalidTxHashError(tx_hash)

        other = await self._repo.find_quote_id_by_tx_hash(tx_hash, db, exclude_quote_id=quote_id)
        if other is not None:
            raise TxHashAlreadyUsedError(tx_hash)

        paid = await self._repo.mark_paid(quote_id, tx_hash, now, db)
        if paid is None:
            # Lost the compare-and-swap: someone else moved the quote first.
            await db.rollback()
            current = await self._repo.get_by_quote_id(quote_id, db)
            if current is not None and current.is_paid:
                return self._replay(current, tx_hash)
            if current is not None and current.is_expired(now):
                await self._expire(db, current)
            raise QuoteExpiredError(quote_id)

        await db.commit()
        logger.info("quote paid quote_id=%s tx_hash=%s", quote_id, tx_hash)
        return _paid_response(paid)

    def _replay(self, quote: PaymentQuote, tx_hash: str) -> ConfirmPaymentResponse:
        if quote.tx_hash != tx_hash:
            raise QuoteAlreadyPaidError(quote.quote_id)
        return _paid_response(quote)

    async def _expire(self, db: AsyncSession, quote: PaymentQuote) -> None:
        if await self._repo.mark_expired(quote.quote_id, db):
            await db.commit()
            logger.info("quote expired quote_id=%s", quote.quote_id)

    async def assert_paid(self, db: AsyncSession, tx_hash: str) -> PaidPayment:
        try:
            quote = await self._repo.get_paid_by_tx_hash(tx_hash, db)
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("paid quote lookup failed tx_hash=%s", tx_hash)
            raise PersistenceError("load paid quote") from None
        if quote is None:
            raise PaymentNotConfirmedError(tx_hash)
        return _to_paid_payment(quote)

    # ------------------------------------------------------------------
    # x402 bet payments
    # ------------------------------------------------------------------

    def create_payment_required(
        self, bet_id: str, amount: Decimal, network: str, nonce: str
    ) -> PaymentRequired:
        return create_payment_required(bet_id, amount, network, nonce)

    def verify_payment(
        self, payment_signature: str, nonce: str, amount: Decimal, network: str
    ) -> PaymentVerification:
        return self._verifier.verify(payment_signature, nonce, amount, network)
