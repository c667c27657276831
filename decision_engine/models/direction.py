"""
Directional vocabulary shared across the engine.

Strategy candidates are evaluated as LONG or SHORT trades, while market
context (trend, higher-timeframe bias, sentiment) and scenarios speak in
BULLISH / BEARISH / NEUTRAL terms. ``normalize_direction`` maps every
upstream spelling onto a ``Bias``.
"""

from enum import Enum
from typing import Any


class Bias(str, Enum):
    """Directional bias of a market signal or scenario."""
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


class Direction(str, Enum):
    """Trade direction evaluated for a strategy candidate."""
    LONG = "LONG"
    SHORT = "SHORT"

    @property
    def bias(self) -> Bias:
        return Bias.BULLISH if self is Direction.LONG else Bias.BEARISH


class DominantBias(str, Enum):
    """Single overall bias produced by conflict resolution."""
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"
    NO_EDGE = "NO_EDGE"


def normalize_direction(value: Any) -> Bias:
    """
    Normalize a directional label to a Bias.

    Accepts LONG/BULLISH/UP/BUY style spellings (any case, substrings such as
    ``BULLISH_SWEEP`` included) and the engine's own enums.

    Args:
        value: Raw direction label

    Returns:
        BULLISH, BEARISH or NEUTRAL
    """
    if isinstance(value, Enum):
        value = value.value
    if not value or not isinstance(value, str):
        return Bias.NEUTRAL

    upper = value.upper()
    if "BULL" in upper or "LONG" in upper or upper in ("UP", "BUY"):
        return Bias.BULLISH
    if "BEAR" in upper or "SHORT" in upper or upper in ("DOWN", "SELL"):
        return Bias.BEARISH
    return Bias.NEUTRAL


def parse_direction(value: Any) -> Direction:
    """
    Parse a trade direction, accepting bias spellings.

    Raises:
        ValueError: If the value has no directional meaning
    """
    bias = normalize_direction(value)
    if bias is Bias.BULLISH:
        return Direction.LONG
    if bias is Bias.BEARISH:
        return Direction.SHORT
    raise ValueError(f"Not a trade direction: {value!r}")
