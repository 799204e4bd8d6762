"""Unified API response wrapper.

Success:
{
    "success": true,
    "data": { ... },
    "timestamp": "...",
    "request_id": "..."
}

Error:
{
    "success": false,
    "error": {"code": 3002, "message": "...", "userMessage": "..."},
    "timestamp": "...",
    "request_id": "..."
}
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: int
    message: str
    user_message: str = Field(serialization_alias="userMessage")


class ApiResponse(BaseModel):
    success: bool = True
    data: Any = None
    error: ErrorBody | None = None
    debug: dict[str, Any] | None = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")

    def to_content(self) -> dict[str, Any]:
        """JSON-ready dict; drops the debug field when it is unset."""
        content = self.model_dump(mode="json", by_alias=True)
        if content.get("debug") is None:
            content.pop("debug", None)
        if self.success:
            content.pop("error", None)
        return content


def success_response(data: Any = None) -> ApiResponse:
    return ApiResponse(success=True, data=data)


def error_response(code: int, message: str, user_message: str | None = None) -> ApiResponse:
    return ApiResponse(
        success=False,
        data=None,
        error=ErrorBody(code=code, message=message, user_message=user_message or message),
    )
