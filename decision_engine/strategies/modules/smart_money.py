"""Smart-money concept strategies: order blocks, fair value gaps, the London Judas swing."""

from ...models.direction import Direction
from ...models.market import MarketState, Regime
from ..asset_class import AssetClass, resolve_asset_class
from ..base import StrategyModule, StrategyTag


class OrderBlock(StrategyModule):
    """Last opposite candle before an impulsive move, best with the trend."""

    name = "Order Block"
    description = "Trading institutional order blocks (last opposite-colored candle before impulsive move)"
    tags = frozenset({StrategyTag.TREND_FOLLOWING, StrategyTag.SMART_MONEY})
    risk_reward_range = (2.5, 4.0)
    entry_logic = "Enter on the return to the order block body with the mean threshold as optimum"

    def evaluate(self, market_state: MarketState, direction: Direction) -> float:
        trend = market_state.trend
        aligned = trend.direction is direction.bias
        score = 0.50

        if market_state.regime is Regime.TRENDING:
            if aligned:
                if trend.strength > 0.70:
                    score = 0.85
                elif trend.strength > 0.50:
                    score = 0.75
            else:
                score = 0.45
        elif market_state.regime is Regime.TRANSITIONAL:
            score = 0.70

        return score


class FairValueGap(StrategyModule):
    name = "Fair Value Gap (FVG)"
    description = "Trading imbalances (gaps) that price tends to fill - ICT methodology"
    tags = frozenset({StrategyTag.TREND_FOLLOWING})
    risk_reward_range = (2.0, 3.5)
    entry_logic = "Enter on a retrace into the imbalance, optimally at its 50% equilibrium"

    _REGIME_SCORES = {
        Regime.TRENDING: 0.82,
        Regime.TRANSITIONAL: 0.75,
        Regime.RANGING: 0.60,
    }

    def evaluate(self, market_state: MarketState, direction: Direction) -> float:
        score = self._REGIME_SCORES.get(market_state.regime, 0.55)

        if market_state.htf_bias is direction.bias:
            score *= 1.15

        leader = "LEADER" if direction is Direction.LONG else "LAGGARD"
        if market_state.relative_strength == leader:
            score *= 1.1

        return min(score, 1.0)


class LondonFakeout(StrategyModule):
    """False break of the Asian range at the London open, forex only."""

    name = "London Fakeout (Judas Swing)"
    description = "Trading the false breakout of Asian range at London open (SMC/ICT methodology)"
    tags = frozenset({StrategyTag.FAKEOUT, StrategyTag.COUNTER_TREND, StrategyTag.REVERSAL,
                      StrategyTag.STOP_HUNT})
    entry_logic = "Enter back inside the Asian range after the London open sweeps one side"

    def evaluate(self, market_state: MarketState, direction: Direction) -> float:
        asset_class = resolve_asset_class(market_state.asset_class, market_state.symbol)
        if asset_class is not AssetClass.FOREX:
            return 0.1

        session = market_state.session
        if session is not None and session.killzone == "LONDON_OPEN":
            return 0.92
        return 0.20
