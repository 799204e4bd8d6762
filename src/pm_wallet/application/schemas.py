"""Pydantic request/response schemas for pm_wallet.

Wire names are camelCase; responses are wrapped in ApiResponse at the router.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ConnectWalletRequest(_CamelModel):
    wallet_address: str = Field(..., min_length=1, max_length=128)
    wallet_type: Literal["evm", "solana"]


class VerifyWalletRequest(_CamelModel):
    session_id: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)


class ConnectWalletResponse(_CamelModel):
    session_id: str
    challenge: str
    expires_at: str


class VerifyWalletResponse(_CamelModel):
    session_token: str
    wallet_address: str
    wallet_type: str
    expires_at: str


class SessionInfoResponse(_CamelModel):
    wallet_address: str
    wallet_type: str
    is_verified: bool
