"""Trend Continuation: pullbacks to demand/supply in an established trend."""

from collections.abc import Sequence
from typing import Any, Optional

from ...models.candle import Candle
from ...models.direction import Direction
from ...models.market import MarketState, Regime
from ..base import (
    Annotation,
    AnnotationKind,
    StrategyModule,
    StrategyTag,
    get_structural_invalidation,
)

SWING_WINDOW = 5
ZONE_HEIGHT_PCT = 0.002


class TrendContinuation(StrategyModule):
    """
    Reference strategy module.

    Suitability is high only when the trade direction agrees with the trend
    and the regime is TRENDING. Annotations combine a swing trendline, a
    retrace zone at the recent extreme, a structural stop and two targets.
    """

    name = "Trend Continuation"
    description = "Trading pullbacks to demand/supply zones in trending markets"
    tags = frozenset({StrategyTag.TREND_FOLLOWING, StrategyTag.CONTINUATION})
    risk_reward_range = (2.0, 3.5)
    entry_logic = "Buy the pullback into demand (sell the rally into supply) inside the trend"
    invalidation_logic = "Invalid once the last swing against the trend is taken out"

    def evaluate(self, market_state: MarketState, direction: Direction) -> float:
        trend = market_state.trend
        if trend.direction is not direction.bias:
            return 0.15

        if market_state.regime is not Regime.TRENDING:
            if market_state.regime is Regime.TRANSITIONAL:
                return 0.50
            return 0.20

        if trend.strength > 0.70:
            return 0.85

        volatility = 1.1 if market_state.volatility == "MODERATE" else 0.9
        return min(trend.strength * volatility * 0.95, 1.0)

    def find_trendline_points(self, candles: Sequence[Candle],
                              direction: Direction) -> list[tuple[Any, float]]:
        """Last four swing lows (LONG) or swing highs (SHORT) as (ts, price)."""
        points = []
        for i in range(SWING_WINDOW, len(candles) - SWING_WINDOW):
            window = candles[i - SWING_WINDOW:i + SWING_WINDOW]
            if direction is Direction.LONG:
                if all(c.low >= candles[i].low for c in window):
                    points.append((candles[i].ts, candles[i].low))
            elif all(c.high <= candles[i].high for c in window):
                points.append((candles[i].ts, candles[i].high))
        return points[-4:]

    def find_retrace_zone(self, candles: Sequence[Candle],
                          direction: Direction) -> Optional[Annotation]:
        """Demand zone above the 20-candle low, or supply zone below the high."""
        recent = candles[-20:]
        if not recent:
            return None

        if direction is Direction.LONG:
            swing = min(c.low for c in recent)
            top, bottom = swing + swing * ZONE_HEIGHT_PCT, swing
            label = "DEMAND"
        else:
            swing = max(c.high for c in recent)
            top, bottom = swing, swing - swing * ZONE_HEIGHT_PCT
            label = "SUPPLY"

        return Annotation(kind=AnnotationKind.ZONE, label=label, top=top, bottom=bottom,
                          metadata={"strength": "strong", "fresh": True})

    def generate_annotations(self, candles: Sequence[Candle], market_state: MarketState,
                             direction: Direction) -> list[Annotation]:
        recent = candles[-50:]
        annotations = []

        points = self.find_trendline_points(recent, direction)
        if len(points) >= 2:
            annotations.append(Annotation(
                kind=AnnotationKind.TRENDLINE,
                label="Trendline",
                points=(points[0], points[-1]),
                metadata={"touches": len(points)},
            ))

        zone = self.find_retrace_zone(recent, direction)
        if zone is None:
            return annotations
        annotations.append(zone)

        entry_top = zone.top * 1.002
        entry_bottom = zone.bottom * 0.998
        optimal_entry = (entry_top + entry_bottom) / 2
        annotations.append(Annotation(kind=AnnotationKind.ENTRY_ZONE, label="Entry",
                                      price=optimal_entry, top=entry_top, bottom=entry_bottom))

        stop = get_structural_invalidation(candles, market_state, direction)
        annotations.append(Annotation(kind=AnnotationKind.STOP_LOSS,
                                      label="Structural Invalidation", price=stop))

        risk = abs(optimal_entry - stop)
        if risk == 0:
            return annotations

        if direction is Direction.LONG:
            pools = sorted((p for p in market_state.liquidity_pools if p.price > zone.top),
                           key=lambda p: p.price)
            sign = 1
        else:
            pools = sorted((p for p in market_state.liquidity_pools if p.price < zone.bottom),
                           key=lambda p: p.price, reverse=True)
            sign = -1

        plan = (
            (2.2, "Cluster", "Structural Pivot"),
            (3.8, "High Conviction", "Trend Extension"),
        )
        for index, (multiple, pool_prefix, fallback_label) in enumerate(plan):
            if len(pools) > index:
                price = pools[index].price
                label = f"{pool_prefix}: {pools[index].label}"
            else:
                price = optimal_entry + sign * risk * multiple
                label = fallback_label
            annotations.append(Annotation(
                kind=AnnotationKind.TARGET,
                label=label,
                price=price,
                metadata={"risk_reward": abs(price - optimal_entry) / risk},
            ))

        return annotations
