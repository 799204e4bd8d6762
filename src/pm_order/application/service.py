# src/pm_order/application/service.py
"""Orders backed by a paid quote.

An order is accepted only when its paymentTxHash belongs to a quote in
'paid' status whose parameters match the order. One quote backs at most
one order (uq_orders_quote_id); resubmitting the same order for the same
quote returns the existing order.
"""
import logging
import uuid
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_common.amounts import round_amount, to_decimal
from src.pm_common.errors import (
    AppError,
    OrderQuoteMismatchError,
    PersistenceError,
    QuoteAlreadyUsedError,
)
from src.pm_common.enums import OrderStatus, OrderType
from src.pm_order.application.schemas import (
    OrderListResponse,
    OrderResponse,
    PlaceOrderRequest,
)
from src.pm_order.domain.models import Order
from src.pm_order.infrastructure.persistence import OrderRepository
from src.pm_payment.application.service import PaymentService
from src.pm_payment.domain.models import PaidPayment

logger = logging.getLogger(__name__)

_repo = OrderRepository()
_payments = PaymentService()


def _optional_float(value: Decimal | None) -> float | None:
    return None if value is None else float(value)


def _order_to_response(order: Order) -> OrderResponse:
    return OrderResponse(
        order_id=order.order_id,
        quote_id=order.quote_id,
        market_id=order.market_id,
        direction=order.direction,
        order_type=order.order_type,
        limit_price=_optional_float(order.limit_price),
        shares=float(order.shares),
        status=order.status,
        filled_price=_optional_float(order.filled_price),
        tx_hash=order.tx_hash,
        created_at=order.created_at.isoformat() if order.created_at else None,
    )


def _mismatch(payment: PaidPayment, req: PlaceOrderRequest, wallet_address: str) -> str | None:
    """First order field that differs from the paid quote, if any."""
    if payment.owner is not None and payment.owner != wallet_address:
        return "owner"
    if payment.market_id != req.market_id:
        return "marketId"
    if payment.direction != req.direction:
        return "direction"
    if payment.order_type != req.order_type:
        return "orderType"
    if round_amount(payment.shares) != round_amount(req.shares):
        return "shares"
    paid_price = None if payment.limit_price is None else round_amount(payment.limit_price)
    req_price = None if req.limit_price is None else round_amount(req.limit_price)
    if paid_price != req_price:
        return "limitPrice"
    return None


def _same_order(existing: Order, wallet_address: str, req: PlaceOrderRequest) -> bool:
    return existing.wallet_address == wallet_address and existing.market_id == req.market_id


def _filled_price(payment: PaidPayment) -> Decimal | None:
    if payment.order_type != OrderType.MARKET.value:
        return None
    if payment.limit_price is not None:
        return round_amount(payment.limit_price)
    return round_amount(to_decimal(settings.X402_DEFAULT_PRICE))


async def place_order(
    req: PlaceOrderRequest, wallet_address: str, db: AsyncSession
) -> OrderResponse:
    payment = await _payments.assert_paid(db, req.payment_tx_hash)

    field = _mismatch(payment, req, wallet_address)
    if field is not None:
        raise OrderQuoteMismatchError(field)

    # Idempotency check
    try:
        existing = await _repo.get_by_quote_id(payment.quote_id, db)
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("order lookup failed quote_id=%s", payment.quote_id)
        raise PersistenceError("load order") from None
    if existing:
        if not _same_order(existing, wallet_address, req):
            raise QuoteAlreadyUsedError(payment.quote_id)
        return _order_to_response(existing)

    order = Order(
        order_id=f"order-{uuid.uuid4().hex}",
        wallet_address=wallet_address,
        quote_id=payment.quote_id,
        market_id=req.market_id,
        direction=req.direction,
        order_type=req.order_type,
        limit_price=payment.limit_price,
        shares=payment.shares,
        status=OrderStatus.PENDING.value,
        filled_price=_filled_price(payment),
        tx_hash=payment.tx_hash,
    )
    try:
        saved = await _repo.create(order, db)
        await db.commit()
    except AppError:
        await db.rollback()
        raise
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("order insert failed quote_id=%s", payment.quote_id)
        raise PersistenceError("create order") from None

    logger.info("order placed order_id=%s quote_id=%s wallet=%s",
                saved.order_id, saved.quote_id, wallet_address)
    return _order_to_response(saved)


async def list_orders(
    wallet_address: str, market_id: str | None, db: AsyncSession
) -> OrderListResponse:
    try:
        orders = await _repo.list_by_wallet(wallet_address, market_id, db)
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("order list failed wallet=%s", wallet_address)
        raise PersistenceError("list orders") from None
    return OrderListResponse(items=[_order_to_response(o) for o in orders])
