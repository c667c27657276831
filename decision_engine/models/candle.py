"""Candle model consumed by annotation generation."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class Candle:
    """OHLCV bar in chronological order."""
    ts: Optional[datetime]
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Candle":
        return cls(
            ts=data.get("ts"),
            open=float(data["open"]),
            high=float(data["high"]),
            low=float(data["low"]),
            close=float(data["close"]),
            volume=float(data.get("volume", 0.0)),
        )
