"""Pydantic models shared by API responses."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    """Error detail in API responses."""

    model_config = ConfigDict(extra="forbid")

    code: str
    message: str
    trace_id: str = Field(..., min_length=1, max_length=128)
    timestamp: datetime


class ErrorResponse(BaseModel):
    """Opaque error body returned to the webhook sender."""

    model_config = ConfigDict(extra="forbid")

    error: ErrorDetail
