"""
Strategy selector.

Evaluates every registered module for both directions, folds the confluence
rule table over each base suitability, clamps once and keeps the best two
candidates per direction.
"""

import math
import random
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from ..config.defaults import SelectorParams
from ..errors import StrategyEvaluationError
from ..logging.config import get_scoring_logger, log_candidate_decision
from ..models.direction import Direction
from ..models.market import Fundamentals, MarketState
from ..strategies.asset_class import resolve_asset_class
from ..strategies.base import StrategyModule, StrategyTag
from ..strategies.registry import StrategyRegistry
from .performance import StrategyPerformanceTracker
from .rules import DEFAULT_RULES, ScoringContext, ScoringRule

logger = get_scoring_logger(__name__)


@dataclass(frozen=True)
class CandidateEvaluation:
    """One (strategy, direction) pair with its final suitability."""
    strategy: StrategyModule
    direction: Direction
    suitability: float
    is_counter_trend: bool

    @property
    def strategy_name(self) -> str:
        return self.strategy.name


@dataclass(frozen=True)
class StrategySelection:
    """Top candidates per direction and their merged ranking."""
    long: tuple[CandidateEvaluation, ...]
    short: tuple[CandidateEvaluation, ...]
    all: tuple[CandidateEvaluation, ...]

    @property
    def best(self) -> Optional[CandidateEvaluation]:
        return self.all[0] if self.all else None


def _clamp(value: float) -> float:
    return min(max(value, 0.0), 1.0)


class StrategySelector:
    """Ranks strategy candidates for a market snapshot."""

    def __init__(
        self,
        registry: Optional[StrategyRegistry] = None,
        params: Optional[SelectorParams] = None,
        rules: Sequence[ScoringRule] = DEFAULT_RULES,
        performance_tracker: Optional[StrategyPerformanceTracker] = None,
        rng: Optional[random.Random] = None,
    ):
        self.registry = registry if registry is not None else StrategyRegistry.default()
        self.params = params or SelectorParams()
        self.rules = tuple(rules)
        self.performance_tracker = performance_tracker
        self._rng = rng or random.Random(self.params.jitter_seed)

    def select(
        self,
        market_state: MarketState,
        fundamentals: Optional[Fundamentals] = None,
        performance_weights: Optional[Mapping[str, float]] = None,
    ) -> StrategySelection:
        """
        Score every module for LONG and SHORT and keep the best candidates.

        Args:
            market_state: Snapshot to evaluate against
            fundamentals: Optional fundamental-event context
            performance_weights: Strategy name -> multiplier; taken from the
                performance tracker when omitted

        Returns:
            Top ``top_n`` candidates per direction above ``min_suitability``
        """
        strategies = self.registry.get_all_strategies()
        asset_class = resolve_asset_class(market_state.asset_class, market_state.symbol)

        if performance_weights is None:
            if self.performance_tracker is not None:
                performance_weights = self.performance_tracker.get_all_weights(
                    s.name for s in strategies
                )
            else:
                performance_weights = {}

        candidates: dict[Direction, list[CandidateEvaluation]] = {
            Direction.LONG: [],
            Direction.SHORT: [],
        }
        for strategy in strategies:
            context = ScoringContext(
                strategy=strategy,
                market_state=market_state,
                asset_class=asset_class,
                fundamentals=fundamentals,
                performance_weights=performance_weights,
            )
            for direction in (Direction.LONG, Direction.SHORT):
                suitability = self.score_candidate(context, direction)
                accepted = suitability > self.params.min_suitability
                log_candidate_decision(
                    logger,
                    strategy=strategy.name,
                    direction=direction.value,
                    suitability=suitability,
                    accepted=accepted,
                    reason="above threshold" if accepted else "at or below threshold",
                )
                if accepted:
                    candidates[direction].append(CandidateEvaluation(
                        strategy=strategy,
                        direction=direction,
                        suitability=suitability,
                        is_counter_trend=strategy.has_tag(StrategyTag.COUNTER_TREND),
                    ))

        top_n = self.params.top_n
        longs = sorted(candidates[Direction.LONG], key=lambda c: c.suitability, reverse=True)[:top_n]
        shorts = sorted(candidates[Direction.SHORT], key=lambda c: c.suitability, reverse=True)[:top_n]
        merged = sorted(longs + shorts, key=lambda c: c.suitability, reverse=True)

        logger.info(
            "Strategy selection complete",
            symbol=market_state.symbol,
            asset_class=asset_class.value,
            long=[c.strategy_name for c in longs],
            short=[c.strategy_name for c in shorts],
        )
        return StrategySelection(long=tuple(longs), short=tuple(shorts), all=tuple(merged))

    def score_candidate(self, context: ScoringContext, direction: Direction) -> float:
        """
        Final suitability for one pair, in [0, 1].

        A failing module or rule scores the pair 0 without affecting others.
        """
        strategy = context.strategy
        try:
            score = self._base_suitability(strategy, context.market_state, direction)
        except StrategyEvaluationError as e:
            logger.warning("Strategy evaluation failed", strategy=strategy.name,
                           direction=direction.value, error=str(e))
            return 0.0

        for rule in self.rules:
            try:
                score = rule.apply(context, direction, score)
            except Exception as e:
                logger.warning("Scoring rule failed", rule=rule.name, strategy=strategy.name,
                               direction=direction.value, error=str(e))
                return 0.0

        if self.params.jitter_pct > 0:
            score *= 1 + self._rng.uniform(-self.params.jitter_pct, self.params.jitter_pct)

        if math.isnan(score):
            return 0.0
        return _clamp(score)

    def _base_suitability(self, strategy: StrategyModule, market_state: MarketState,
                          direction: Direction) -> float:
        try:
            raw = strategy.evaluate(market_state, direction)
        except Exception as e:
            raise StrategyEvaluationError(
                f"{strategy.name} raised during evaluate: {e}",
                strategy_name=strategy.name,
                direction=direction.value,
            ) from e

        if isinstance(raw, bool) or not isinstance(raw, (int, float)) or math.isnan(raw):
            raise StrategyEvaluationError(
                f"{strategy.name} returned non-numeric suitability {raw!r}",
                strategy_name=strategy.name,
                direction=direction.value,
            )
        return _clamp(float(raw))

    def get_strategy(self, name: str) -> Optional[StrategyModule]:
        return self.registry.get_strategy_by_name(name)
