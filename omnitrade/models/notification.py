"""Notification outcome model."""

from typing import Optional

from pydantic import BaseModel, Field


class NotificationOutcome(BaseModel):
    """Result of one delivery attempt on one channel."""

    channel: str = Field(..., min_length=1, description="Channel name")
    success: bool = Field(..., description="Whether delivery succeeded")
    error: Optional[str] = Field(default=None, description="Failure reason")

    model_config = {"frozen": True}
