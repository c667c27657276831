"""Session-based strategies."""

from ...models.direction import Direction
from ...models.market import MarketState
from ..base import StrategyModule, StrategyTag

OPEN_KILLZONES = ("LONDON_OPEN", "NY_OPEN")


class SessionBreakout(StrategyModule):
    name = "Session Open Breakout"
    description = "Breakout strategy for London and New York opens using pre-market range"
    tags = frozenset({StrategyTag.BREAKOUT})
    entry_logic = "Volatility expansion at session open breaking the pre-market range"

    def evaluate(self, market_state: MarketState, direction: Direction) -> float:
        session = market_state.session
        if session is None or not session.active:
            return 0.0

        if session.killzone not in OPEN_KILLZONES:
            return 0.1

        if market_state.trend.momentum is direction.bias:
            return 0.85
        return 0.4
