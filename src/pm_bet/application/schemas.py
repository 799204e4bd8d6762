"""Pydantic request/response schemas for the bets API (camelCase on the wire)."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PrepareBetRequest(_CamelModel):
    prediction_id: str = Field(..., min_length=1, max_length=64)
    token_address: str = Field(..., min_length=1, max_length=256)
    bet_direction: Literal["bullish", "bearish"]
    # Range is enforced by BetService so the 0.1–100 rule lives in one place
    amount: float = Field(..., allow_inf_nan=False)
    network: Literal["base", "solana"]


class ConfirmBetRequest(_CamelModel):
    bet_id: str = Field(..., min_length=1, max_length=64)
    payment_signature: str = Field(..., min_length=1)


class BetDetails(_CamelModel):
    token_address: str
    token_symbol: str | None
    bet_direction: str
    amount: float
    odds: float
    potential_payout: float
    ai_prediction: str
    ai_confidence: int | None
    entry_price: float
    expires_at: str


class PrepareBetResponse(_CamelModel):
    bet_id: str
    payment_required: dict[str, Any]
    bet_details: BetDetails


class ConfirmBetResponse(_CamelModel):
    id: str
    status: str
    payment_status: str
    tx_hash: str | None
    potential_payout: float
    expires_at: str


class BetView(_CamelModel):
    id: str
    token_address: str
    token_symbol: str | None
    bet_direction: str
    amount: float
    currency: str
    odds: float
    potential_payout: float
    payment_status: str
    payment_network: str
    payment_tx_hash: str | None
    bet_status: str
    ai_prediction: str
    ai_confidence: int | None
    ai_price_target_24h: float | None
    entry_price: float
    settlement_price: float | None
    payout_amount: float | None
    created_at: str | None
    expires_at: str


class PredictionView(_CamelModel):
    id: str
    token_address: str
    token_symbol: str | None
    prediction: str
    confidence: int
    price_target_24h: float | None
    current_price: float
    created_at: str | None


class BetDetailResponse(_CamelModel):
    bet: BetView
    prediction: PredictionView | None
