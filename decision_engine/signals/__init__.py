"""Signal lifecycle models; the manager lives in ``signals.manager``."""

from .models import (
    Signal,
    SignalOutcome,
    SignalStats,
    SignalStatus,
    SignalUpdate,
    Target,
    TargetLevel,
    TradeSetup,
)

__all__ = [
    "Signal",
    "SignalOutcome",
    "SignalStats",
    "SignalStatus",
    "SignalUpdate",
    "Target",
    "TargetLevel",
    "TradeSetup",
]
