"""Indicator-based strategies."""

from ...models.direction import Direction
from ...models.market import MarketState, Regime
from ..base import StrategyModule, StrategyTag


class RsiDivergence(StrategyModule):
    """Momentum exhaustion where price makes a new extreme that RSI fails to confirm."""

    name = "RSI Divergence"
    description = "Detecting momentum exhaustion where price makes new highs/lows but RSI fails to confirm"
    tags = frozenset({StrategyTag.COUNTER_TREND, StrategyTag.REVERSAL})
    risk_reward_range = (2.0, 3.0)
    entry_logic = "Enter when price makes a new extreme but RSI prints a lower high / higher low"

    def evaluate(self, market_state: MarketState, direction: Direction) -> float:
        if market_state.regime is Regime.TRANSITIONAL:
            return 0.85
        if market_state.regime is Regime.RANGING:
            return 0.80
        if market_state.regime is Regime.TRENDING and market_state.trend.strength < 0.5:
            return 0.75
        return 0.30


class EmaAlignment(StrategyModule):
    name = "EMA Alignment (50/200)"
    description = ("Trading trend continuation when the 50 EMA is aligned with the 200 EMA "
                   "and price pulls back to the averages")
    tags = frozenset({StrategyTag.TREND_FOLLOWING})
    risk_reward_range = (2.0, 4.0)
    entry_logic = "Enter on the pullback to the 50 EMA while it trends beyond the 200 EMA"

    def evaluate(self, market_state: MarketState, direction: Direction) -> float:
        if market_state.regime is Regime.TRENDING and market_state.trend.strength > 0.7:
            return 0.95
        if market_state.regime is Regime.TRANSITIONAL:
            return 0.60
        return 0.25
