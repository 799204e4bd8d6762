"""Pydantic request/response schemas for the payments API (camelCase on the wire)."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.pm_common.amounts import AMOUNT_PLACES, exceeds_places

# shares * limit price must stay inside NUMERIC(20, 6)
MAX_SHARES = 1_000_000_000
MAX_LIMIT_PRICE = 10_000


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QuoteRequest(_CamelModel):
    market_id: str = Field(..., min_length=1, max_length=128)
    direction: Literal["Up", "Down"]
    order_type: Literal["Market", "Limit"]
    limit_price: float | None = Field(default=None, ge=0, le=MAX_LIMIT_PRICE, allow_inf_nan=False)
    shares: float = Field(..., gt=0, le=MAX_SHARES, allow_inf_nan=False)
    token: str = Field(default="USDC", min_length=1, max_length=64)

    @field_validator("shares", "limit_price")
    @classmethod
    def at_most_six_places(cls, v: float | None) -> float | None:
        if v is not None and exceeds_places(v, AMOUNT_PLACES):
            raise ValueError(f"at most {AMOUNT_PLACES} decimal places")
        return v


class UnsignedTx(_CamelModel):
    chain_id: int
    from_: str = Field(alias="from")
    to: str
    data: str
    value: str


class QuoteResponse(_CamelModel):
    quote_id: str
    token: str
    amount: float
    spender: str
    deadline: str
    unsigned_tx: UnsignedTx


class ConfirmPaymentRequest(_CamelModel):
    quote_id: str = Field(..., min_length=1, max_length=128)
    tx_hash: str = Field(..., min_length=1, max_length=256)


class ConfirmPaymentResponse(_CamelModel):
    status: str
    tx_hash: str
