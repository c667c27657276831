"""Strategy registry: the catalog of modules the selector evaluates."""

from enum import Enum
from typing import Optional

import structlog

from .base import StrategyModule
from .modules import (
    ChochReversal,
    DoubleTopBottom,
    EmaAlignment,
    FairValueGap,
    LiquiditySweep,
    LondonFakeout,
    OrderBlock,
    RangeTrading,
    RsiDivergence,
    SessionBreakout,
    StructureBreakRetest,
    TrendContinuation,
)

logger = structlog.get_logger(__name__)


class StrategyCategory(str, Enum):
    """Display categories for strategy modules."""
    MARKET_STRUCTURE = "Market Structure"
    SMC_ICT = "SMC & ICT"
    LIQUIDITY = "Liquidity Based"
    SESSIONS = "Session Based"
    RANGE = "Range & Mean Reversion"
    ADVANCED = "Hybrid & Advanced"
    INDICATORS = "Indicator Based"
    HARMONICS = "Harmonic Patterns"
    PROFILE = "Volume & Profile"


class StrategyRegistry:
    """
    Ordered catalog of strategy modules grouped by category.

    Registration order is preserved and is the order in which the selector
    evaluates modules.
    """

    def __init__(self, strategies: Optional[list[tuple[StrategyCategory, StrategyModule]]] = None):
        self._entries: list[tuple[StrategyCategory, StrategyModule]] = []
        for category, strategy in strategies or ():
            self.register(strategy, category)

    @classmethod
    def default(cls) -> "StrategyRegistry":
        """Registry holding every shipped module."""
        return cls([
            (StrategyCategory.MARKET_STRUCTURE, TrendContinuation()),
            (StrategyCategory.MARKET_STRUCTURE, StructureBreakRetest()),
            (StrategyCategory.MARKET_STRUCTURE, ChochReversal()),
            (StrategyCategory.SMC_ICT, OrderBlock()),
            (StrategyCategory.SMC_ICT, FairValueGap()),
            (StrategyCategory.LIQUIDITY, LiquiditySweep()),
            (StrategyCategory.SESSIONS, SessionBreakout()),
            (StrategyCategory.SESSIONS, LondonFakeout()),
            (StrategyCategory.RANGE, RangeTrading()),
            (StrategyCategory.ADVANCED, DoubleTopBottom()),
            (StrategyCategory.INDICATORS, RsiDivergence()),
            (StrategyCategory.INDICATORS, EmaAlignment()),
        ])

    def register(self, strategy: StrategyModule, category: StrategyCategory) -> None:
        """
        Add a module to the catalog.

        Raises:
            ValueError: If the category is unknown or a module with the same
                name is already registered
        """
        category = StrategyCategory(category)
        if self.get_strategy_by_name(strategy.name) is not None:
            raise ValueError(f"Strategy already registered: {strategy.name}")
        self._entries.append((category, strategy))
        logger.debug("Strategy registered", strategy=strategy.name, category=category.value)

    def get_all_strategies(self) -> list[StrategyModule]:
        return [strategy for _, strategy in self._entries]

    def get_strategies_by_category(self, category: StrategyCategory) -> list[StrategyModule]:
        category = StrategyCategory(category)
        return [strategy for cat, strategy in self._entries if cat is category]

    def get_strategy_by_name(self, name: str) -> Optional[StrategyModule]:
        for _, strategy in self._entries:
            if strategy.name == name:
                return strategy
        return None

    def get_categorized_map(self) -> dict[StrategyCategory, list[StrategyModule]]:
        """Every category mapped to its modules, empty categories included."""
        return {category: self.get_strategies_by_category(category)
                for category in StrategyCategory}

    def __len__(self) -> int:
        return len(self._entries)
