"""Range and mean-reversion strategies."""

from ...models.direction import Direction
from ...models.market import MarketState, Regime
from ..base import StrategyModule


class RangeTrading(StrategyModule):
    name = "Range Trading"
    description = "Mean reversion trades within range high/low boundaries"
    risk_reward_range = (1.5, 2.5)
    entry_logic = ("Enter near the range boundary after a rejection candle, targeting "
                   "the range midpoint first")
    invalidation_logic = "Invalid on acceptance outside the range"

    def evaluate(self, market_state: MarketState, direction: Direction) -> float:
        if market_state.regime is Regime.RANGING:
            return 0.80
        if market_state.regime is Regime.TRANSITIONAL:
            return 0.55
        return 0.25
