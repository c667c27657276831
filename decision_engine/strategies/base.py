"""
Strategy module interface and shared risk helpers.

Every strategy is a stateless ``StrategyModule`` subclass. ``evaluate`` must
be pure: given the same market snapshot and direction it returns the same
suitability in [0, 1]. The annotation and setup helpers turn a candidate into
concrete entry, invalidation and target levels for the signal lifecycle.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

import structlog

from ..errors import InsufficientDataError
from ..metrics.atr import calculate_atr
from ..models.candle import Candle
from ..models.direction import Direction
from ..models.market import MarketState
from ..signals.models import TargetLevel, TradeSetup
from .asset_class import AssetClass, get_asset_parameters, resolve_asset_class

logger = structlog.get_logger(__name__)

INVALIDATION_LOOKBACK = 20


class StrategyTag(str, Enum):
    """
    Concept tags that scoring rules key on.

    REVERSAL covers every pattern faded against a distribution leg;
    STOP_HUNT is the narrower sweep and fakeout family that SMT divergence
    rewards most.
    """
    TREND_FOLLOWING = "TREND_FOLLOWING"
    COUNTER_TREND = "COUNTER_TREND"
    REVERSAL = "REVERSAL"
    SMART_MONEY = "SMART_MONEY"
    BREAKOUT = "BREAKOUT"
    FAKEOUT = "FAKEOUT"
    STOP_HUNT = "STOP_HUNT"
    CONTINUATION = "CONTINUATION"


class AnnotationKind(str, Enum):
    """Chart annotation types produced for a setup."""
    TRENDLINE = "TRENDLINE"
    ZONE = "ZONE"
    ENTRY_ZONE = "ENTRY_ZONE"
    STOP_LOSS = "STOP_LOSS"
    TARGET = "TARGET"


@dataclass(frozen=True)
class Annotation:
    """A price level, zone or line attached to a setup."""
    kind: AnnotationKind
    label: str = ""
    price: Optional[float] = None
    top: Optional[float] = None
    bottom: Optional[float] = None
    points: tuple[tuple[Any, float], ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RiskParameters:
    """Stop, targets and expected reward range of a setup."""
    stop_loss: Optional[float]
    targets: tuple[TargetLevel, ...]
    risk_reward_range: tuple[float, float]


def get_volatility_buffer(candles: Sequence[Candle], asset_class: AssetClass,
                          period: int = 14) -> float:
    """ATR scaled by the asset class stop multiplier, 0 without enough history."""
    atr = calculate_atr(candles, period)
    if atr is None:
        return 0.0
    return atr * get_asset_parameters(asset_class).stop_loss_multiplier


def get_structural_invalidation(candles: Sequence[Candle], market_state: MarketState,
                                direction: Direction) -> float:
    """
    Price beyond which the setup's structure is broken.

    Uses the latest swing low (LONG) or swing high (SHORT) pushed out by the
    volatility buffer. Without swing points the extreme of the last 20
    candles is used instead.

    Raises:
        InsufficientDataError: If there are neither swing points nor candles
    """
    asset_class = resolve_asset_class(market_state.asset_class, market_state.symbol)
    buffer = get_volatility_buffer(candles, asset_class)
    kind = "LOW" if direction is Direction.LONG else "HIGH"
    swings = [s for s in market_state.swing_points if s.kind == kind]

    if swings:
        level = swings[-1].price
    elif candles:
        recent = candles[-INVALIDATION_LOOKBACK:]
        if direction is Direction.LONG:
            level = min(c.low for c in recent)
        else:
            level = max(c.high for c in recent)
    else:
        raise InsufficientDataError(
            "No swing points or candles to derive invalidation",
            required_count=1,
            available_count=0,
        )

    return level - buffer if direction is Direction.LONG else level + buffer


def generate_standard_targets(entry: float, stop_loss: float, market_state: MarketState,
                              direction: Direction) -> tuple[TargetLevel, TargetLevel]:
    """
    First and second liquidity pools beyond entry, falling back to 2R and 4R.
    """
    risk = abs(entry - stop_loss)
    if direction is Direction.LONG:
        beyond = sorted(p.price for p in market_state.liquidity_pools if p.price > entry)
        fallback = (entry + risk * 2, entry + risk * 4)
    else:
        beyond = sorted((p.price for p in market_state.liquidity_pools if p.price < entry),
                        reverse=True)
        fallback = (entry - risk * 2, entry - risk * 4)

    first = beyond[0] if beyond else fallback[0]
    second = beyond[1] if len(beyond) > 1 else fallback[1]
    return (
        TargetLevel(price=first, label="T1: Liquidity" if beyond else "T1: 2R"),
        TargetLevel(price=second, label="T2: Liquidity" if len(beyond) > 1 else "T2: 4R"),
    )


class StrategyModule(ABC):
    """
    Base class for pluggable strategy modules.

    Subclasses set ``name``, ``description`` and ``tags`` and implement
    ``evaluate``. Modules hold no mutable state.
    """

    name: str = ""
    description: str = ""
    tags: frozenset = frozenset()
    risk_reward_range: tuple[float, float] = (2.0, 3.0)
    entry_logic: str = "Enter on confirmation at the entry zone"
    invalidation_logic: str = "Invalid on a close beyond the structural stop"

    @abstractmethod
    def evaluate(self, market_state: MarketState, direction: Direction) -> float:
        """Suitability of this strategy for the snapshot and direction, in [0, 1]."""

    def has_tag(self, tag: StrategyTag) -> bool:
        return tag in self.tags

    def get_entry_logic(self, analysis: Optional[Mapping[str, Any]] = None) -> str:
        return self.entry_logic

    def get_invalidation_logic(self, analysis: Optional[Mapping[str, Any]] = None) -> str:
        return self.invalidation_logic

    def get_risk_parameters(self, analysis: Optional[Mapping[str, Any]] = None) -> RiskParameters:
        """Risk parameters taken from a prior analysis mapping."""
        analysis = analysis or {}
        targets = tuple(
            t if isinstance(t, TargetLevel) else TargetLevel(price=float(t))
            for t in analysis.get("targets") or ()
        )
        return RiskParameters(
            stop_loss=analysis.get("stop_loss"),
            targets=targets,
            risk_reward_range=self.risk_reward_range,
        )

    def generate_annotations(self, candles: Sequence[Candle], market_state: MarketState,
                             direction: Direction) -> list[Annotation]:
        """
        Entry zone around the last close, structural stop and two targets.

        Returns an empty list when there is no candle history or no risk
        between entry and stop.
        """
        if not candles:
            return []

        entry = candles[-1].close
        stop = get_structural_invalidation(candles, market_state, direction)
        if abs(entry - stop) == 0:
            return []

        t1, t2 = generate_standard_targets(entry, stop, market_state, direction)
        return [
            Annotation(kind=AnnotationKind.ENTRY_ZONE, label="Entry", price=entry,
                       top=entry * 1.001, bottom=entry * 0.999),
            Annotation(kind=AnnotationKind.STOP_LOSS, label="Invalidation", price=stop),
            Annotation(kind=AnnotationKind.TARGET, label=t1.label, price=t1.price),
            Annotation(kind=AnnotationKind.TARGET, label=t2.label, price=t2.price),
        ]

    def build_setup(self, candles: Sequence[Candle], market_state: MarketState,
                    direction: Direction) -> Optional[TradeSetup]:
        """
        Turn this module's annotations into a trackable trade setup.

        Returns None when the annotations lack an entry or a stop.
        """
        try:
            annotations = self.generate_annotations(candles, market_state, direction)
        except InsufficientDataError as e:
            logger.debug("Cannot build setup", strategy=self.name, reason=str(e))
            return None

        entry = next((a for a in annotations if a.kind is AnnotationKind.ENTRY_ZONE), None)
        stop = next((a for a in annotations if a.kind is AnnotationKind.STOP_LOSS), None)
        if entry is None or stop is None:
            return None

        if entry.price is not None:
            entry_price = entry.price
        else:
            entry_price = (entry.top + entry.bottom) / 2

        targets = tuple(
            TargetLevel(price=a.price, label=a.label)
            for a in annotations
            if a.kind is AnnotationKind.TARGET and a.price is not None
        )
        return TradeSetup(
            strategy=self.name,
            direction=direction.bias,
            entry=entry_price,
            stop_loss=stop.price,
            targets=targets,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
