"""
Confluence scoring rules.

Each rule is a small named object with a pure ``apply(context, direction,
score)`` returning the adjusted score. Rules multiply; the selector folds
them in table order and clamps once at the end, so intermediate scores may
leave [0, 1].
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional

from ..models.direction import Bias, Direction, normalize_direction
from ..models.market import Fundamentals, MarketState
from ..strategies.asset_class import AssetClass, suitability_multiplier
from ..strategies.base import StrategyModule, StrategyTag


@dataclass(frozen=True)
class ScoringContext:
    """Inputs shared by every rule for one (strategy, snapshot) pair."""
    strategy: StrategyModule
    market_state: MarketState
    asset_class: AssetClass
    fundamentals: Optional[Fundamentals] = None
    performance_weights: Mapping[str, float] = field(default_factory=dict)

    @property
    def trend_following(self) -> bool:
        return self.strategy.has_tag(StrategyTag.TREND_FOLLOWING)

    @property
    def counter_trend(self) -> bool:
        return self.strategy.has_tag(StrategyTag.COUNTER_TREND)

    @property
    def reversal(self) -> bool:
        return self.strategy.has_tag(StrategyTag.REVERSAL)

    @property
    def fundamental_bias(self) -> Bias:
        if self.fundamentals is None:
            return Bias.NEUTRAL
        return self.fundamentals.impact_direction


class ScoringRule:
    """Base class for a named multiplicative adjustment."""

    name = ""

    def apply(self, context: ScoringContext, direction: Direction, score: float) -> float:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class TrendAlignmentRule(ScoringRule):
    name = "trend_alignment"

    def apply(self, context, direction, score):
        trend = context.market_state.trend
        if trend.direction is Bias.NEUTRAL:
            return score

        aligned = trend.direction is direction.bias
        if context.trend_following:
            score *= 1.15 if aligned else 0.3
        if context.counter_trend and not aligned and trend.strength > 0.8:
            score *= 1.1
        return score


class AssetClassFitRule(ScoringRule):
    name = "asset_class_fit"

    def apply(self, context, direction, score):
        return score * suitability_multiplier(context.strategy.name, context.asset_class)


class FundamentalAlignmentRule(ScoringRule):
    name = "fundamental_alignment"

    def apply(self, context, direction, score):
        bias = context.fundamental_bias
        if bias is Bias.NEUTRAL:
            return score
        return score * (1.25 if bias is direction.bias else 0.7)


class MtfConfluenceRule(ScoringRule):
    """Higher-timeframe agreement; opposing HTF hurts trend-following only."""

    name = "mtf_confluence"

    def apply(self, context, direction, score):
        htf = context.market_state.htf_bias
        if htf is Bias.NEUTRAL:
            return score
        if htf is direction.bias:
            return score * 1.3
        if context.trend_following:
            return score * 0.5
        return score


class MacroCorrelationRule(ScoringRule):
    name = "macro_correlation"

    def apply(self, context, direction, score):
        macro = context.market_state.macro_bias
        if macro is Bias.NEUTRAL:
            return score
        return score * (1.15 if macro is direction.bias else 0.85)


class SessionTimingRule(ScoringRule):
    """Killzone boosts by strategy concept, plus a crypto Asian-session drag."""

    name = "session_timing"

    def apply(self, context, direction, score):
        session = context.market_state.session
        if session is None or not session.active:
            return score

        strategy = context.strategy
        killzone = session.killzone
        if killzone:
            if strategy.has_tag(StrategyTag.SMART_MONEY):
                score *= 1.15
            if strategy.has_tag(StrategyTag.BREAKOUT) and killzone == "LONDON_OPEN":
                score *= 1.4
            if strategy.has_tag(StrategyTag.FAKEOUT) and killzone == "LONDON_OPEN":
                score *= 1.4
            if (strategy.has_tag(StrategyTag.CONTINUATION)
                    and killzone in ("NY_OPEN", "LONDON_NY_OVERLAP")):
                score *= 1.25

        if (context.asset_class is AssetClass.CRYPTO and session.active == "ASIAN"
                and strategy.has_tag(StrategyTag.CONTINUATION)):
            score *= 0.8
        return score


class SmtDivergenceRule(ScoringRule):
    name = "smt_divergence"

    def apply(self, context, direction, score):
        smt = context.market_state.smt_divergence
        if smt is None:
            return score
        if smt is direction.bias:
            if context.strategy.has_tag(StrategyTag.STOP_HUNT):
                return score * 1.5
            return score * 1.25
        return score * 0.7


class InstitutionalVolumeRule(ScoringRule):
    name = "institutional_volume"

    def apply(self, context, direction, score):
        volume = context.market_state.volume_analysis
        if volume is None or not volume.is_institutional:
            return score

        score *= 1.25
        if context.counter_trend:
            if volume.sub_type == "ABSORPTION":
                score *= 1.2
            elif volume.sub_type == "CLIMAX":
                score *= 1.3
        return score


class RelativeStrengthRule(ScoringRule):
    name = "relative_strength"

    _STRONG = {("LEADER", Direction.LONG), ("LAGGARD", Direction.SHORT)}
    _TURNING = {("RECOVERING", Direction.LONG), ("FADING", Direction.SHORT)}

    def apply(self, context, direction, score):
        status = context.market_state.relative_strength
        if status is None or status == "NEUTRAL":
            return score
        if (status, direction) in self._STRONG:
            return score * 1.3
        if (status, direction) in self._TURNING:
            return score * 1.2
        return score * 0.8


class LiquiditySweepRule(ScoringRule):
    """A fresh sweep (e.g. ``BULLISH_SWEEP``) boosts the expansion direction."""

    name = "liquidity_sweep"

    def apply(self, context, direction, score):
        sweep = context.market_state.liquidity_sweep
        if not sweep:
            return score
        if normalize_direction(sweep.split("_")[0]) is direction.bias:
            return score * 1.4
        return score


class MagnetProximityRule(ScoringRule):
    name = "magnet_proximity"

    def apply(self, context, direction, score):
        state = context.market_state
        magnet = state.primary_magnet
        if magnet is None or state.current_price is None:
            return score

        magnet_bias = Bias.BULLISH if magnet.price > state.current_price else Bias.BEARISH
        if magnet_bias is direction.bias:
            return score * (1 + magnet.urgency / 200)
        if magnet.urgency > 70:
            return score * 0.4
        return score


class NewsHazardRule(ScoringRule):
    name = "news_hazard"

    def apply(self, context, direction, score):
        fundamentals = context.fundamentals
        if fundamentals is None or not fundamentals.news_imminent:
            return score
        bias = context.fundamental_bias
        if bias is Bias.NEUTRAL or bias is direction.bias:
            return score * 0.9
        return score * 0.5


class MarketCycleRule(ScoringRule):
    """Accumulation / manipulation / distribution phase adaptation."""

    name = "market_cycle"

    def apply(self, context, direction, score):
        cycle = context.market_state.amd_cycle
        if cycle is None or cycle.phase == "UNKNOWN":
            return score

        same_direction = cycle.direction is direction.bias
        if cycle.phase == "MANIPULATION":
            if not same_direction:
                score *= 1.4
            elif context.trend_following:
                score *= 0.2
        elif cycle.phase == "DISTRIBUTION":
            if same_direction and context.trend_following:
                score *= 1.35
            elif not same_direction and context.reversal:
                score *= 0.3
        elif cycle.phase == "ACCUMULATION":
            if context.trend_following:
                score *= 0.6
        return score


class SentimentRule(ScoringRule):
    """Contrarian sentiment readings and fading of extreme neutral crowds."""

    name = "sentiment"

    def apply(self, context, direction, score):
        sentiment = context.market_state.sentiment
        if sentiment is None or sentiment.confidence <= 0.5:
            return score

        if sentiment.bias.startswith("CONTRARIAN_"):
            if normalize_direction(sentiment.bias.replace("CONTRARIAN_", "")) is direction.bias:
                score *= 1.3
        elif "NEUTRAL" in sentiment.bias:
            if sentiment.score > 50 and direction is Direction.SHORT:
                score *= 1.15
            elif sentiment.score < -50 and direction is Direction.LONG:
                score *= 1.15
        return score


class OnChainRule(ScoringRule):
    name = "on_chain"

    def apply(self, context, direction, score):
        reading = context.market_state.on_chain
        if reading is None or reading.confidence <= 0.6:
            return score
        return score * (1.3 if reading.bias is direction.bias else 0.7)


class OptionsFlowRule(ScoringRule):
    name = "options_flow"

    def apply(self, context, direction, score):
        reading = context.market_state.options_flow
        if reading is None or reading.confidence <= 0.6:
            return score
        if reading.bias is direction.bias:
            return score * 1.3
        return score


class SeasonalityRule(ScoringRule):
    name = "seasonality"

    def apply(self, context, direction, score):
        reading = context.market_state.seasonality
        if reading is None or reading.confidence <= 0.65:
            return score
        return score * (1.2 if reading.bias is direction.bias else 0.8)


class VolumeProfileRule(ScoringRule):
    """POC proximity, value-area discount/premium and naked POC targets."""

    name = "volume_profile"

    def apply(self, context, direction, score):
        state = context.market_state
        profile = state.volume_profile
        price = state.current_price
        if profile is None or price is None:
            return score

        if profile.poc and abs(price - profile.poc) / profile.poc < 0.002:
            score *= 1.2

        if direction is Direction.LONG and price < profile.val:
            score *= 1.25
        elif direction is Direction.SHORT and price > profile.vah:
            score *= 1.25
        elif not context.trend_following:
            score *= 0.7

        if direction is Direction.LONG:
            targeting = any(poc > price for poc in state.naked_pocs)
        else:
            targeting = any(poc < price for poc in state.naked_pocs)
        if targeting:
            score *= 1.15
        return score


class PerformanceWeightRule(ScoringRule):
    name = "performance_weight"

    def apply(self, context, direction, score):
        return score * context.performance_weights.get(context.strategy.name, 1.0)


DEFAULT_RULES: tuple[ScoringRule, ...] = (
    TrendAlignmentRule(),
    AssetClassFitRule(),
    FundamentalAlignmentRule(),
    MtfConfluenceRule(),
    MacroCorrelationRule(),
    SessionTimingRule(),
    SmtDivergenceRule(),
    InstitutionalVolumeRule(),
    RelativeStrengthRule(),
    LiquiditySweepRule(),
    MagnetProximityRule(),
    NewsHazardRule(),
    MarketCycleRule(),
    SentimentRule(),
    OnChainRule(),
    OptionsFlowRule(),
    SeasonalityRule(),
    VolumeProfileRule(),
    PerformanceWeightRule(),
)
