"""Tests for the market-state snapshot model."""

import math

import pytest

from decision_engine.errors import MalformedDataError
from decision_engine.models.direction import (
    Bias,
    Direction,
    normalize_direction,
    parse_direction,
)
from decision_engine.models.market import (
    MarketState,
    PoolStrength,
    Regime,
    RiskLevel,
    TechnicalValidity,
)


class TestNormalizeDirection:
    """Test direction label normalization."""

    @pytest.mark.parametrize("label", ["LONG", "bullish", "Up", "BUY", "BULLISH_SWEEP"])
    def test_bullish_spellings(self, label):
        assert normalize_direction(label) is Bias.BULLISH

    @pytest.mark.parametrize("label", ["SHORT", "bearish", "down", "SELL", "BEARISH_SWEEP"])
    def test_bearish_spellings(self, label):
        assert normalize_direction(label) is Bias.BEARISH

    @pytest.mark.parametrize("label", [None, "", "SIDEWAYS", 42])
    def test_everything_else_is_neutral(self, label):
        assert normalize_direction(label) is Bias.NEUTRAL

    def test_accepts_enums(self):
        assert normalize_direction(Direction.SHORT) is Bias.BEARISH
        assert normalize_direction(Bias.BULLISH) is Bias.BULLISH

    def test_parse_direction(self):
        assert parse_direction("bullish") is Direction.LONG
        assert parse_direction("SELL") is Direction.SHORT
        with pytest.raises(ValueError):
            parse_direction("NEUTRAL")

    def test_direction_properties(self):
        assert Direction.LONG.bias is Bias.BULLISH
        assert Direction.SHORT.bias is Bias.BEARISH


class TestMarketStateFromDict:
    """Test building snapshots from orchestrator mappings."""

    def test_full_snapshot(self, bullish_state_data):
        state = MarketState.from_dict(bullish_state_data)

        assert state.symbol == "BTCUSDT"
        assert state.trend.direction is Bias.BULLISH
        assert state.trend.strength == 0.85
        assert state.regime is Regime.TRENDING
        assert state.htf_bias is Bias.BULLISH
        assert state.liquidity_pools[0].strength is PoolStrength.HIGH
        assert state.structures[0].marker_type == "BOS"
        assert state.structures[0].bias is Bias.BULLISH
        assert state.swing_points[0].kind == "LOW"
        assert state.session.killzone == "NY_OPEN"
        assert state.smt_divergence is Bias.BULLISH
        assert state.relative_strength == "LEADER"
        assert state.liquidity_sweep == "BULLISH_SWEEP"
        assert state.primary_magnet.urgency == 80
        assert state.sentiment.bias == "CONTRARIAN_BULLISH"
        assert state.options_flow.bias is Bias.BULLISH
        assert state.seasonality.confidence == 0.9
        assert state.volume_profile.poc == 100.1
        assert state.naked_pocs == (108.0,)

    def test_missing_sections_are_none(self, neutral_state_data):
        state = MarketState.from_dict(neutral_state_data)

        assert state.session is None
        assert state.volume_profile is None
        assert state.smt_divergence is None
        assert state.htf_bias is Bias.NEUTRAL
        assert state.news_risk is RiskLevel.LOW
        assert state.technical_validity is TechnicalValidity.NORMAL

    def test_missing_trend_degrades_to_neutral(self):
        state = MarketState.from_dict({"symbol": "X", "regime": "RANGING"})

        assert state.trend.direction is Bias.NEUTRAL
        assert state.trend.strength == 0.0

    def test_nan_strength_uses_default(self):
        state = MarketState.from_dict({"trend": {"direction": "up", "strength": math.nan}})
        assert state.trend.strength == 0.0

    def test_unknown_regime_rejected(self):
        with pytest.raises(MalformedDataError) as exc_info:
            MarketState.from_dict({"regime": "CHOPPY"})
        assert exc_info.value.field_name == "market_state.regime"

    def test_non_numeric_price_rejected(self):
        with pytest.raises(MalformedDataError):
            MarketState.from_dict({"current_price": "100"})

    def test_pools_must_be_a_list_of_mappings(self):
        with pytest.raises(MalformedDataError):
            MarketState.from_dict({"liquidity_pools": "110"})
        with pytest.raises(MalformedDataError):
            MarketState.from_dict({"liquidity_pools": [110.0]})

    def test_non_mapping_rejected(self):
        with pytest.raises(MalformedDataError):
            MarketState.from_dict(["not", "a", "mapping"])
