"""ATR (Average True Range) calculations"""

from collections.abc import Sequence
from typing import Optional

from ..models.candle import Candle


def calculate_true_range(current: Candle, previous: Optional[Candle] = None) -> float:
    """
    Calculate True Range for a single candle

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close))

    Args:
        current: Current candle
        previous: Previous candle (None for first candle)

    Returns:
        True Range value
    """
    if previous is None:
        return current.high - current.low

    range_hl = current.high - current.low
    range_hc = abs(current.high - previous.close)
    range_lc = abs(current.low - previous.close)

    return max(range_hl, range_hc, range_lc)


def calculate_atr(candles: Sequence[Candle], period: int = 14) -> Optional[float]:
    """
    Calculate Average True Range using Simple Moving Average

    Every true range in the window needs a previous close, so at least
    ``period + 1`` candles are required.

    Args:
        candles: Candles in chronological order
        period: ATR period (default 14)

    Returns:
        ATR value or None if insufficient data
    """
    if period <= 0 or len(candles) < period + 1:
        return None

    recent = candles[-(period + 1):]
    true_ranges = [
        calculate_true_range(recent[i], recent[i - 1])
        for i in range(1, len(recent))
    ]
    return sum(true_ranges) / period
