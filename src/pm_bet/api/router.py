"""Bets API router: prepare, confirm, me, {bet_id}.

POST /bets/prepare answers HTTP 402 Payment Required: the body carries the
usual envelope and the x402 descriptor is repeated, base64 encoded, in the
X-Payment-Required header.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_bet.application.schemas import ConfirmBetRequest, PrepareBetRequest
from src.pm_bet.application.service import BetService
from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_current_wallet
from src.pm_gateway.auth.jwt_handler import WalletIdentity
from src.pm_gateway.middleware.rate_limit import RateLimiter

router = APIRouter(prefix="/bets", tags=["bets"])
_service = BetService()

prepare_rate_limit = RateLimiter(
    "bets:prepare",
    limit=settings.BET_PREPARE_RATE_LIMIT,
    window_seconds=settings.BET_PREPARE_RATE_WINDOW_SECONDS,
)

PAYMENT_REQUIRED_HEADER = "X-Payment-Required"


def _get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "req_unknown")


@router.post(
    "/prepare",
    status_code=status.HTTP_402_PAYMENT_REQUIRED,
    response_model=ApiResponse,
    summary="Create a pending bet and return its payment requirement",
    dependencies=[Depends(prepare_rate_limit)],
)
async def prepare_bet(
    request: Request,
    body: PrepareBetRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    wallet: Annotated[WalletIdentity, Depends(get_current_wallet)],
) -> JSONResponse:
    data, payment_required = await _service.prepare_bet(db, wallet, body)
    resp = success_response(data.model_dump(by_alias=True))
    resp.request_id = _get_request_id(request)
    return JSONResponse(
        status_code=status.HTTP_402_PAYMENT_REQUIRED,
        content=resp.to_content(),
        headers={PAYMENT_REQUIRED_HEADER: payment_required.to_header()},
    )


@router.post(
    "/confirm",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Verify the payment proof and activate the bet",
)
async def confirm_bet(
    request: Request,
    body: ConfirmBetRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    wallet: Annotated[WalletIdentity, Depends(get_current_wallet)],
) -> ApiResponse:
    data = await _service.confirm_bet(db, wallet, body.bet_id, body.payment_signature)
    resp = success_response(data.model_dump(by_alias=True))
    resp.request_id = _get_request_id(request)
    return resp


@router.get(
    "/me",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="List the caller's bets, newest first",
)
async def list_my_bets(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    wallet: Annotated[WalletIdentity, Depends(get_current_wallet)],
) -> ApiResponse:
    bets = await _service.get_my_bets(db, wallet)
    resp = success_response([bet.model_dump(by_alias=True) for bet in bets])
    resp.request_id = _get_request_id(request)
    return resp


@router.get(
    "/{bet_id}",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Get one of the caller's bets with its prediction snapshot",
)
async def get_bet(
    bet_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    wallet: Annotated[WalletIdentity, Depends(get_current_wallet)],
) -> ApiResponse:
    data = await _service.get_bet(db, wallet, bet_id)
    resp = success_response(data.model_dump(by_alias=True))
    resp.request_id = _get_request_id(request)
    return resp
