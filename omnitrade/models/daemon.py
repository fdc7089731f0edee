"""Daemon process record model."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class DaemonProcessRecord(BaseModel):
    """On-disk evidence that a daemon instance is running."""

    pid: int = Field(..., gt=0, description="OS process ID of the daemon")
    started_at: datetime = Field(..., description="Daemon start timestamp")

    model_config = {"frozen": True}

    def uptime_seconds(self, now: Optional[datetime] = None) -> float:
        """Wall-clock seconds since the daemon started."""
        now = now or datetime.now()
        return max((now - self.started_at).total_seconds(), 0.0)
