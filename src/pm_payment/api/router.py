"""Payments API router: quote, confirm.

POST /payments/quote is open to anonymous callers; a bearer token, when
present, records the caller's wallet as the quote owner and payer.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_optional_wallet
from src.pm_gateway.auth.jwt_handler import WalletIdentity
from src.pm_payment.application.schemas import ConfirmPaymentRequest, QuoteRequest
from src.pm_payment.application.service import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])
_service = PaymentService()


def _get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "req_unknown")


@router.post(
    "/quote",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Mint a time-bounded payment quote",
)
async def create_quote(
    request: Request,
    body: QuoteRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    wallet: Annotated[WalletIdentity | None, Depends(get_optional_wallet)],
) -> ApiResponse:
    data = await _service.create_quote(
        db, body, wallet_address=wallet.address if wallet else None
    )
    resp = success_response(data.model_dump(by_alias=True))
    resp.request_id = _get_request_id(request)
    return resp


@router.post(
    "/confirm",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Confirm a quote with the payment transaction hash",
)
async def confirm_payment(
    request: Request,
    body: ConfirmPaymentRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.confirm_payment(db, body.quote_id, body.tx_hash)
    resp = success_response(data.model_dump(by_alias=True))
    resp.request_id = _get_request_id(request)
    return resp
