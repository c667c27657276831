"""Concrete strategy modules shipped with the default registry."""

from .indicators import EmaAlignment, RsiDivergence
from .liquidity import LiquiditySweep
from .range_trading import RangeTrading
from .sessions import SessionBreakout
from .smart_money import FairValueGap, LondonFakeout, OrderBlock
from .structure import ChochReversal, DoubleTopBottom, StructureBreakRetest
from .trend_continuation import TrendContinuation

__all__ = [
    "TrendContinuation",
    "StructureBreakRetest",
    "ChochReversal",
    "DoubleTopBottom",
    "OrderBlock",
    "FairValueGap",
    "LondonFakeout",
    "LiquiditySweep",
    "SessionBreakout",
    "RangeTrading",
    "RsiDivergence",
    "EmaAlignment",
]
