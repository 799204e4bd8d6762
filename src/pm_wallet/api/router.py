"""Wallet API router: connect, verify, session.

All endpoints return ApiResponse. request_id is read from request.state
(injected by RequestLogMiddleware).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.errors import UnauthorizedError
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import bearer_scheme
from src.pm_wallet.application.schemas import ConnectWalletRequest, VerifyWalletRequest
from src.pm_wallet.application.service import WalletSessionService

router = APIRouter(prefix="/wallet", tags=["wallet"])
_service = WalletSessionService()


def _get_request_id(request: Request) -> str:
    """Read request_id injected by RequestLogMiddleware, fallback if absent."""
    return getattr(request.state, "request_id", "req_unknown")


@router.post(
    "/connect",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Begin wallet login: returns a challenge to sign",
)
async def connect(
    request: Request,
    body: ConnectWalletRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.initiate(db, body.wallet_address, body.wallet_type)
    resp = success_response(data.model_dump(by_alias=True))
    resp.request_id = _get_request_id(request)
    return resp


@router.post(
    "/verify",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Complete wallet login with the signed challenge",
)
async def verify(
    request: Request,
    body: VerifyWalletRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.verify(db, body.session_id, body.signature)
    resp = success_response(data.model_dump(by_alias=True))
    resp.request_id = _get_request_id(request)
    return resp


@router.get(
    "/session",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Introspect the current bearer token",
)
async def get_session(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> ApiResponse:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Missing bearer token")
    identity = _service.resolve(credentials.credentials)
    data = _service.session_info(identity)
    resp = success_response(data.model_dump(by_alias=True))
    resp.request_id = _get_request_id(request)
    return resp
