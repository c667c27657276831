"""Liquidity-based strategies."""

from ...models.direction import Direction
from ...models.market import MarketState, Regime
from ..base import StrategyModule, StrategyTag


class LiquiditySweep(StrategyModule):
    """Stop hunts at equal highs/lows, strongest as a counter move in ranges."""

    name = "Liquidity Sweep"
    description = "Trading liquidity grabs and stop hunts at equal highs/lows"
    tags = frozenset({StrategyTag.COUNTER_TREND, StrategyTag.REVERSAL, StrategyTag.SMART_MONEY,
                      StrategyTag.STOP_HUNT})
    entry_logic = ("Wait for a wick through the equal highs/lows, then enter on the "
                   "rejection and structure shift")
    invalidation_logic = "Invalid if price accepts beyond the swept level"

    _REGIME_SCORES = {
        Regime.RANGING: 0.70,
        Regime.TRANSITIONAL: 0.65,
        Regime.TRENDING: 0.50,
    }

    def evaluate(self, market_state: MarketState, direction: Direction) -> float:
        return self._REGIME_SCORES.get(market_state.regime, 0.50)
