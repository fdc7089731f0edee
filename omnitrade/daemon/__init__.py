"""Background alert daemon for OmniTrade."""

from omnitrade.daemon.controller import ControlResult, DaemonController, DaemonStatus
from omnitrade.daemon.registry import ProcessRegistry, format_uptime
from omnitrade.daemon.scheduler import PollScheduler

__all__ = [
    "ControlResult",
    "DaemonController",
    "DaemonStatus",
    "PollScheduler",
    "ProcessRegistry",
    "format_uptime",
]
