"""Market-structure strategies: break & retest, change of character, double tops/bottoms."""

from ...models.direction import Direction
from ...models.market import MarketState, Regime
from ..base import StrategyModule, StrategyTag


class StructureBreakRetest(StrategyModule):
    name = "Structure Break & Retest"
    description = "Trading retests after confirmed breaks of structure"
    tags = frozenset({StrategyTag.TREND_FOLLOWING})
    entry_logic = ("Enter on the first retest of the broken structural level with a "
                   "rejection wick inside the ATR-buffered zone")
    invalidation_logic = ("Invalid on a close beyond the structural pivot, which marks the "
                          "break as inducement")

    def evaluate(self, market_state: MarketState, direction: Direction) -> float:
        if market_state.regime is Regime.TRANSITIONAL:
            return 0.80

        if market_state.regime is Regime.TRENDING:
            if market_state.trend.strength > 0.70:
                return 0.72
            if market_state.trend.strength > 0.50:
                return 0.60

        return 0.30


class ChochReversal(StrategyModule):
    """First break of counter-trend structure, strongest in transitional markets."""

    name = "Change of Character (CHoCH)"
    description = ("Trading potential trend reversals identified by the first break of "
                   "recent counter-trend structure")
    risk_reward_range = (2.5, 4.0)
    entry_logic = "Enter on the retest of the CHoCH level once order flow has shifted"

    def evaluate(self, market_state: MarketState, direction: Direction) -> float:
        score = 0.25
        if market_state.regime is Regime.TRANSITIONAL:
            score = 0.90
        elif market_state.regime is Regime.TRENDING and market_state.trend.strength < 0.4:
            score = 0.75

        if market_state.htf_bias is direction.bias:
            score *= 1.2

        return min(score, 1.0)


class DoubleTopBottom(StrategyModule):
    name = "Double Top / Bottom"
    description = "Trading reversals at significant equal price levels (M and W patterns)"
    tags = frozenset({StrategyTag.COUNTER_TREND, StrategyTag.REVERSAL})
    risk_reward_range = (2.0, 3.0)
    entry_logic = "Enter when a second peak or trough fails at the level of the first"

    def evaluate(self, market_state: MarketState, direction: Direction) -> float:
        if market_state.regime is Regime.RANGING:
            return 0.85
        if market_state.regime is Regime.TRANSITIONAL:
            return 0.70
        return 0.35
