"""
Scenario weighting and conflict resolution.

Directional scenarios are scored with a coarse four-factor model:

    score = 40 * HTF + 30 * Liquidity + 20 * Structure - 10 * NewsRisk

rounded half-up and clamped to [0, 100]. Scenarios below the viability
threshold are killed; the best survivor becomes dominant. When bullish and
bearish scenarios both survive, the higher-timeframe bias breaks the tie.
"""

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Union

import structlog

from ..config.defaults import ScenarioParams
from ..models.direction import Bias, DominantBias, normalize_direction
from ..models.market import MarketState, PoolStrength, RiskLevel, TechnicalValidity
from ..signals.models import TradeSetup

logger = structlog.get_logger(__name__)

_NEWS_PENALTY = {
    RiskLevel.HIGH: 1.0,
    RiskLevel.MEDIUM: 0.5,
    RiskLevel.LOW: 0.0,
}

_VALIDITY_PENALTY = {
    TechnicalValidity.SUSPENDED: 1.0,
    TechnicalValidity.DEGRADED: 0.6,
    TechnicalValidity.NORMAL: 0.0,
}


@dataclass(frozen=True)
class Scenario:
    """A directional hypothesis competing for dominance."""
    direction: Bias
    target: Optional[float] = None
    probability: Optional[float] = None
    label: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Scenario":
        target = data.get("target")
        probability = data.get("probability")
        return cls(
            direction=normalize_direction(data.get("direction")),
            target=float(target) if target is not None else None,
            probability=float(probability) if probability is not None else None,
            label=str(data.get("label") or ""),
        )


@dataclass(frozen=True)
class ScoredScenario:
    """Scenario with its composite score in [0, 100]."""
    scenario: Scenario
    score: int

    @property
    def direction(self) -> Bias:
        return self.scenario.direction

    @property
    def target(self) -> Optional[float]:
        return self.scenario.target

    @property
    def probability(self) -> Optional[float]:
        return self.scenario.probability

    @property
    def label(self) -> str:
        return self.scenario.label


@dataclass(frozen=True)
class DominantScenario:
    """Result of dominant-scenario selection; NO_EDGE carries a reason."""
    scenario: Optional[ScoredScenario]
    score: int
    bias: DominantBias
    confidence: float
    alternatives: tuple[ScoredScenario, ...] = ()
    killed: int = 0
    reason: Optional[str] = None

    @property
    def viable(self) -> tuple[ScoredScenario, ...]:
        if self.scenario is None:
            return ()
        return (self.scenario,) + self.alternatives


@dataclass(frozen=True)
class ConflictResolution:
    """Outcome of resolving bullish/bearish competition."""
    conflict: bool
    resolution: Optional[Union[Scenario, ScoredScenario]]
    reason: Optional[str] = None
    suppressed: int = 0


@dataclass(frozen=True)
class Analysis:
    """
    Inputs to ``force_dominant_bias``.

    ``setups`` may hold trade setups, scenarios or mappings with a direction
    and either ``target`` or ``targets``.
    """
    market_state: MarketState
    setups: Sequence[Any] = ()
    prediction_bias: Optional[str] = None


def _as_scenario(item: Any) -> Scenario:
    if isinstance(item, Scenario):
        return item
    if isinstance(item, ScoredScenario):
        return item.scenario
    if isinstance(item, TradeSetup):
        target = item.targets[0].price if item.targets else None
        return Scenario(direction=item.direction, target=target, label=item.strategy)
    if isinstance(item, Mapping):
        if "target" not in item and item.get("targets"):
            first = item["targets"][0]
            target = first.get("price") if isinstance(first, Mapping) else first
            item = {**item, "target": target}
        return Scenario.from_dict(item)
    raise TypeError(f"Cannot interpret {type(item).__name__} as a scenario")


def _bias_of(direction: Bias) -> DominantBias:
    return DominantBias(direction.value)


class ScenarioWeighting:
    """Scores scenarios and reduces them to a single dominant bias."""

    def __init__(self, params: Optional[ScenarioParams] = None):
        self.params = params or ScenarioParams()

    def calculate_scenario_score(self, scenario: Scenario, market_state: MarketState) -> int:
        """Composite score in [0, 100], rounded half-up."""
        p = self.params
        total = (
            p.htf_weight * self.htf_bias_score(scenario, market_state)
            + p.liquidity_weight * self.liquidity_proximity_score(scenario, market_state)
            + p.structure_weight * self.structure_alignment_score(scenario, market_state)
            - p.news_weight * self.news_risk_penalty(market_state)
        )
        return int(min(max(math.floor(total + 0.5), 0), 100))

    def htf_bias_score(self, scenario: Scenario, market_state: MarketState) -> float:
        htf = market_state.htf_bias
        if htf is scenario.direction:
            return 1.0
        if htf is Bias.NEUTRAL:
            return 0.5
        return 0.2

    def liquidity_proximity_score(self, scenario: Scenario, market_state: MarketState) -> float:
        """Strength of liquidity resting near the scenario target."""
        target = scenario.target
        if not target or not market_state.current_price:
            return 0.3

        tolerance = self.params.liquidity_tolerance_pct
        nearby = [
            pool for pool in market_state.liquidity_pools
            if abs(pool.price - target) / target < tolerance
        ]
        if not nearby:
            return 0.4
        if any(pool.strength is PoolStrength.HIGH for pool in nearby):
            return 1.0
        if any(pool.strength is PoolStrength.MEDIUM for pool in nearby):
            return 0.7
        return 0.5

    def structure_alignment_score(self, scenario: Scenario, market_state: MarketState) -> float:
        """Recent non-failed breaks of structure in the scenario direction."""
        if scenario.direction is Bias.NEUTRAL:
            return 0.3

        recent = market_state.structures[-self.params.structure_window:]
        aligned = sum(
            1 for event in recent
            if event.marker_type == "BOS"
            and event.status != "FAILED"
            and event.bias is scenario.direction
        )
        if aligned >= 3:
            return 1.0
        if aligned >= 2:
            return 0.75
        if aligned >= 1:
            return 0.5
        return 0.3

    def news_risk_penalty(self, market_state: MarketState) -> float:
        """
        Scheduled-news penalty, falling back to technical validity.

        Elevated news risk decides the penalty on its own; validity only
        counts when news risk is low.
        """
        news = _NEWS_PENALTY.get(market_state.news_risk, 0.0)
        if news:
            return news
        return _VALIDITY_PENALTY.get(market_state.technical_validity, 0.0)

    def score_scenarios(self, scenarios: Sequence[Any],
                        market_state: MarketState) -> list[ScoredScenario]:
        """Score and sort descending; ties keep input order."""
        scored = [
            ScoredScenario(scenario=s, score=self.calculate_scenario_score(s, market_state))
            for s in (_as_scenario(item) for item in scenarios)
        ]
        return sorted(scored, key=lambda s: s.score, reverse=True)

    def select_dominant_scenario(self, scenarios: Sequence[Any],
                                 market_state: MarketState) -> DominantScenario:
        """
        Pick the highest-scoring viable scenario.

        Returns:
            The dominant scenario with up to ``max_alternatives`` runners-up,
            or a NO_EDGE result with score 0 and a reason when nothing is viable
        """
        if not scenarios:
            return DominantScenario(scenario=None, score=0, bias=DominantBias.NO_EDGE,
                                    confidence=0.0, reason="No scenarios supplied")

        scored = self.score_scenarios(scenarios, market_state)
        threshold = self.params.viability_threshold
        viable = [s for s in scored if s.score >= threshold]
        killed = len(scored) - len(viable)

        if not viable:
            logger.info("No viable scenario", killed=killed, threshold=threshold,
                        best_score=scored[0].score)
            return DominantScenario(
                scenario=None,
                score=0,
                bias=DominantBias.NO_EDGE,
                confidence=0.0,
                killed=killed,
                reason=f"All scenarios scored below viability threshold ({threshold:g})",
            )

        dominant = viable[0]
        return DominantScenario(
            scenario=dominant,
            score=dominant.score,
            bias=_bias_of(dominant.direction),
            confidence=dominant.score / 100,
            alternatives=tuple(viable[1:1 + self.params.max_alternatives]),
            killed=killed,
        )

    def resolve_conflicts(self, scenarios: Sequence[Union[Scenario, ScoredScenario]],
                          market_state: MarketState) -> ConflictResolution:
        """
        Resolve bullish vs bearish competition using the higher-timeframe bias.

        Scenarios are expected in ranked order; the first scenario of the
        favoured direction wins. With a neutral HTF the highest probability
        wins and every other scenario is suppressed.
        """
        if len(scenarios) <= 1:
            return ConflictResolution(conflict=False,
                                      resolution=scenarios[0] if scenarios else None)

        bullish = [s for s in scenarios if s.direction is Bias.BULLISH]
        bearish = [s for s in scenarios if s.direction is Bias.BEARISH]
        if not bullish or not bearish:
            return ConflictResolution(conflict=False, resolution=scenarios[0])

        htf = market_state.htf_bias
        if htf is Bias.BULLISH:
            resolution = ConflictResolution(conflict=True, resolution=bullish[0],
                                            reason="HTF bias favors bullish scenario",
                                            suppressed=len(bearish))
        elif htf is Bias.BEARISH:
            resolution = ConflictResolution(conflict=True, resolution=bearish[0],
                                            reason="HTF bias favors bearish scenario",
                                            suppressed=len(bullish))
        else:
            best = max(scenarios, key=lambda s: s.probability or 0)
            resolution = ConflictResolution(conflict=True, resolution=best,
                                            reason="Highest probability scenario selected",
                                            suppressed=len(scenarios) - 1)

        logger.info("Scenario conflict resolved", htf_bias=htf.value,
                    reason=resolution.reason, suppressed=resolution.suppressed)
        return resolution

    def force_dominant_bias(self, analysis: Analysis) -> DominantBias:
        """
        Reduce a full analysis to one bias.

        An upstream prediction bias wins outright. Otherwise each setup is
        scored from its direction and first target and the best viable
        direction is returned, or NO_EDGE.
        """
        if analysis.prediction_bias:
            try:
                return DominantBias(analysis.prediction_bias.upper())
            except ValueError:
                return _bias_of(normalize_direction(analysis.prediction_bias))

        scored = self.score_scenarios(analysis.setups, analysis.market_state)
        viable = [s for s in scored if s.score >= self.params.viability_threshold]
        if not viable:
            return DominantBias.NO_EDGE
        return _bias_of(viable[0].direction)
