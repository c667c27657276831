"""Tests for scenario weighting and conflict resolution."""

import pytest

from decision_engine.config.defaults import ScenarioParams
from decision_engine.models.direction import Bias, DominantBias
from decision_engine.models.market import MarketState
from decision_engine.scenarios.weighting import (
    Analysis,
    Scenario,
    ScenarioWeighting,
    ScoredScenario,
)
from decision_engine.signals.models import TargetLevel, TradeSetup


def _state(htf="BULLISH", structures=1, **overrides):
    data = {
        "symbol": "BTCUSDT",
        "current_price": 100.0,
        "mtf": {"global_bias": htf},
        "liquidity_pools": [
            {"price": 110.0, "strength": "HIGH"},
            {"price": 90.0, "strength": "MEDIUM"},
            {"price": 80.0, "strength": "LOW"},
        ],
        "structures": [
            {"marker_type": "BOS", "direction": "BULLISH"} for _ in range(structures)
        ],
    }
    data.update(overrides)
    return MarketState.from_dict(data)


BULL = Scenario(direction=Bias.BULLISH, target=110.0, probability=0.7, label="bull")
BEAR = Scenario(direction=Bias.BEARISH, target=90.0, probability=0.65, label="bear")


class TestScenarioScore:
    """Test the four-factor composite score."""

    def setup_method(self):
        self.weighting = ScenarioWeighting()

    def test_aligned_scenario_at_high_pool(self):
        # 40 * 1.0 + 30 * 1.0 + 20 * 0.5 - 10 * 0
        assert self.weighting.calculate_scenario_score(BULL, _state()) == 80

    def test_every_factor_maxed(self):
        assert self.weighting.calculate_scenario_score(BULL, _state(structures=3)) == 90

    def test_opposed_scenario(self):
        # 40 * 0.2 + 30 * 0.7 + 20 * 0.3
        assert self.weighting.calculate_scenario_score(BEAR, _state()) == 35

    def test_neutral_htf(self):
        assert self.weighting.htf_bias_score(BULL, _state(htf="NEUTRAL")) == 0.5

    @pytest.mark.parametrize("target,expected", [
        (110.5, 1.0),
        (90.5, 0.7),
        (80.2, 0.5),
        (150.0, 0.4),
        (None, 0.3),
    ])
    def test_liquidity_proximity(self, target, expected):
        scenario = Scenario(direction=Bias.BULLISH, target=target)
        assert self.weighting.liquidity_proximity_score(scenario, _state()) == expected

    def test_liquidity_without_current_price(self):
        state = _state(current_price=None)
        assert self.weighting.liquidity_proximity_score(BULL, state) == 0.3

    def test_structure_ignores_failed_and_choch(self):
        state = MarketState.from_dict({
            "mtf": {"global_bias": "BULLISH"},
            "structures": [
                {"marker_type": "BOS", "direction": "up", "status": "FAILED"},
                {"marker_type": "CHOCH", "direction": "up"},
                {"marker_type": "BOS", "direction": "up"},
                {"marker_type": "BOS", "direction": "up"},
            ],
        })
        assert self.weighting.structure_alignment_score(BULL, state) == 0.75

    def test_structure_window(self):
        weighting = ScenarioWeighting(ScenarioParams(structure_window=2))
        state = MarketState.from_dict({"structures": [
            {"marker_type": "BOS", "direction": "up"},
            {"marker_type": "BOS", "direction": "up"},
            {"marker_type": "BOS", "direction": "down"},
            {"marker_type": "BOS", "direction": "up"},
        ]})
        assert weighting.structure_alignment_score(BULL, state) == 0.5

    def test_neutral_scenario_structure(self):
        scenario = Scenario(direction=Bias.NEUTRAL)
        assert self.weighting.structure_alignment_score(scenario, _state(structures=3)) == 0.3

    @pytest.mark.parametrize("news,validity,expected", [
        ("LOW", "NORMAL", 0.0),
        ("MEDIUM", "NORMAL", 0.5),
        ("LOW", "DEGRADED", 0.6),
        ("HIGH", "DEGRADED", 1.0),
        ("LOW", "SUSPENDED", 1.0),
        ("MEDIUM", "DEGRADED", 0.5),
        ("MEDIUM", "SUSPENDED", 0.5),
    ])
    def test_news_risk_checked_before_validity(self, news, validity, expected):
        state = _state(news_risk=news, technical_validity=validity)
        assert self.weighting.news_risk_penalty(state) == expected

    def test_news_lowers_score(self):
        assert self.weighting.calculate_scenario_score(BULL, _state(news_risk="HIGH")) == 70

    def test_medium_news_masks_degraded_validity(self):
        state = _state(news_risk="MEDIUM", technical_validity="DEGRADED")
        assert self.weighting.calculate_scenario_score(BULL, state) == 75

    def test_better_inputs_never_lower_score(self):
        scores = [
            self.weighting.calculate_scenario_score(BULL, _state(htf=htf, structures=n))
            for htf, n in (("BEARISH", 0), ("NEUTRAL", 0), ("BULLISH", 0),
                           ("BULLISH", 1), ("BULLISH", 2), ("BULLISH", 3))
        ]
        assert scores == sorted(scores)


class TestDominantScenario:
    """Test viability filtering and dominant selection."""

    def setup_method(self):
        self.weighting = ScenarioWeighting()

    def test_dominant_selected(self):
        result = self.weighting.select_dominant_scenario([BEAR, BULL], _state())

        assert result.bias is DominantBias.BULLISH
        assert result.score == 80
        assert result.confidence == pytest.approx(0.8)
        assert result.scenario.label == "bull"
        assert result.killed == 1
        assert result.alternatives == ()

    def test_all_killed(self):
        weak = Scenario(direction=Bias.BEARISH, target=None)
        result = self.weighting.select_dominant_scenario([BEAR, weak], _state())

        assert result.bias is DominantBias.NO_EDGE
        assert result.score == 0
        assert result.scenario is None
        assert result.killed == 2
        assert result.reason == "All scenarios scored below viability threshold (50)"

    def test_empty_input(self):
        result = self.weighting.select_dominant_scenario([], _state())

        assert result.bias is DominantBias.NO_EDGE
        assert result.reason == "No scenarios supplied"
        assert result.viable == ()

    def test_alternatives_capped(self):
        scenarios = [Scenario(direction=Bias.BULLISH, target=110.0, label=str(i)) for i in range(5)]
        result = self.weighting.select_dominant_scenario(scenarios, _state())

        assert result.scenario.label == "0"
        assert [s.label for s in result.alternatives] == ["1", "2"]
        assert len(result.viable) == 3

    def test_accepts_mappings_and_setups(self):
        setup = TradeSetup(strategy="Order Block", direction=Bias.BULLISH, entry=100.0,
                           stop_loss=95.0, targets=(TargetLevel(price=110.0),))
        mapping = {"direction": "short", "targets": [{"price": 90.0}]}

        scored = self.weighting.score_scenarios([mapping, setup], _state())

        assert [s.label for s in scored] == ["Order Block", ""]
        assert scored[0].score == 80

    def test_unknown_input_type(self):
        with pytest.raises(TypeError):
            self.weighting.score_scenarios([42], _state())


class TestConflictResolution:
    """Test HTF-driven tie breaking between directions."""

    def setup_method(self):
        self.weighting = ScenarioWeighting()
        self.ranked = [
            ScoredScenario(scenario=BULL, score=70),
            ScoredScenario(scenario=BEAR, score=65),
        ]

    def test_htf_bullish_favors_bull(self):
        result = self.weighting.resolve_conflicts(self.ranked, _state(htf="BULLISH"))

        assert result.conflict is True
        assert result.resolution.direction is Bias.BULLISH
        assert result.reason == "HTF bias favors bullish scenario"
        assert result.suppressed == 1

    def test_htf_bearish_favors_bear_even_when_ranked_lower(self):
        result = self.weighting.resolve_conflicts(self.ranked, _state(htf="BEARISH"))

        assert result.resolution.label == "bear"
        assert result.reason == "HTF bias favors bearish scenario"

    def test_neutral_htf_uses_probability(self):
        bear = Scenario(direction=Bias.BEARISH, probability=0.8, label="likely")
        result = self.weighting.resolve_conflicts([BULL, bear], _state(htf="NEUTRAL"))

        assert result.resolution.label == "likely"
        assert result.reason == "Highest probability scenario selected"
        assert result.suppressed == 1

    def test_single_direction_is_not_conflict(self):
        result = self.weighting.resolve_conflicts([BULL, BULL], _state())

        assert result.conflict is False
        assert result.resolution is BULL

    def test_empty(self):
        result = self.weighting.resolve_conflicts([], _state())

        assert result.conflict is False
        assert result.resolution is None


class TestForceDominantBias:
    """Test reducing an analysis to one bias."""

    def setup_method(self):
        self.weighting = ScenarioWeighting()

    @pytest.mark.parametrize("prediction,expected", [
        ("BEARISH", DominantBias.BEARISH),
        ("no_edge", DominantBias.NO_EDGE),
        ("long", DominantBias.BULLISH),
    ])
    def test_prediction_wins(self, prediction, expected):
        analysis = Analysis(market_state=_state(), setups=[BULL], prediction_bias=prediction)
        assert self.weighting.force_dominant_bias(analysis) is expected

    def test_best_viable_setup(self):
        analysis = Analysis(market_state=_state(), setups=[
            {"direction": "BEARISH", "target": 90.0},
            {"direction": "BULLISH", "targets": [110.0]},
        ])
        assert self.weighting.force_dominant_bias(analysis) is DominantBias.BULLISH

    def test_nothing_viable(self):
        analysis = Analysis(market_state=_state(), setups=[BEAR])
        assert self.weighting.force_dominant_bias(analysis) is DominantBias.NO_EDGE

    def test_no_setups(self):
        assert self.weighting.force_dominant_bias(Analysis(market_state=_state())) is \
            DominantBias.NO_EDGE
