# src/pm_order/application/schemas.py
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.pm_common.amounts import AMOUNT_PLACES, exceeds_places
from src.pm_payment.application.schemas import MAX_LIMIT_PRICE, MAX_SHARES


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlaceOrderRequest(_CamelModel):
    market_id: str = Field(..., min_length=1, max_length=128)
    direction: Literal["Up", "Down"]
    order_type: Literal["Market", "Limit"]
    limit_price: float | None = Field(default=None, ge=0, le=MAX_LIMIT_PRICE, allow_inf_nan=False)
    shares: float = Field(..., gt=0, le=MAX_SHARES, allow_inf_nan=False)
    payment_tx_hash: str

    @field_validator("shares", "limit_price")
    @classmethod
    def at_most_six_places(cls, v: float | None) -> float | None:
        if v is not None and exceeds_places(v, AMOUNT_PLACES):
            raise ValueError(f"at most {AMOUNT_PLACES} decimal places")
        return v

    @field_validator("payment_tx_hash")
    @classmethod
    def no_whitespace(cls, v: str) -> str:
        if not v or v != v.strip() or " " in v:
            raise ValueError("paymentTxHash must not contain whitespace")
        return v


class OrderResponse(_CamelModel):
    order_id: str
    quote_id: str
    market_id: str
    direction: str
    order_type: str
    limit_price: float | None
    shares: float
    status: str
    filled_price: float | None
    tx_hash: str
    created_at: str | None = None


class OrderListResponse(_CamelModel):
    items: list[OrderResponse]
