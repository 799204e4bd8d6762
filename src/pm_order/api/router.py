# src/pm_order/api/router.py
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_current_wallet
from src.pm_gateway.auth.jwt_handler import WalletIdentity
from src.pm_order.application import service as svc
from src.pm_order.application.schemas import PlaceOrderRequest

router = APIRouter(prefix="/orders", tags=["orders"])


def _get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "req_unknown")


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def place_order(
    request: Request,
    req: PlaceOrderRequest,
    wallet: Annotated[WalletIdentity, Depends(get_current_wallet)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await svc.place_order(req, wallet.address, db)
    resp = success_response(data.model_dump(by_alias=True))
    resp.request_id = _get_request_id(request)
    return resp


@router.get("/me", response_model=ApiResponse)
async def list_my_orders(
    request: Request,
    wallet: Annotated[WalletIdentity, Depends(get_current_wallet)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    market_id: str | None = Query(None, alias="marketId", description="Filter by market ID"),
) -> ApiResponse:
    data = await svc.list_orders(wallet.address, market_id, db)
    resp = success_response(data.model_dump(by_alias=True))
    resp.request_id = _get_request_id(request)
    return resp
