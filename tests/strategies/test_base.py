"""Tests for shared strategy helpers and setup building."""

from unittest.mock import patch

import pytest

from decision_engine.errors import InsufficientDataError
from decision_engine.metrics.atr import calculate_atr
from decision_engine.models.direction import Bias, Direction
from decision_engine.strategies.asset_class import AssetClass
from decision_engine.strategies.base import (
    AnnotationKind,
    generate_standard_targets,
    get_structural_invalidation,
    get_volatility_buffer,
)
from decision_engine.strategies.modules import ChochReversal, RangeTrading, TrendContinuation


class TestVolatilityBuffer:
    """Test ATR-scaled stop buffers."""

    def test_short_history_gives_zero(self, candle_factory):
        candles = candle_factory([100, 101, 102])
        assert get_volatility_buffer(candles, AssetClass.CRYPTO) == 0.0

    def test_scaled_by_asset_class(self, rising_candles):
        atr = calculate_atr(rising_candles)

        assert get_volatility_buffer(rising_candles, AssetClass.CRYPTO) == pytest.approx(atr * 2.5)
        assert get_volatility_buffer(rising_candles, AssetClass.FOREX) == pytest.approx(atr * 1.5)


class TestStructuralInvalidation:
    """Test stop placement from swings and candle extremes."""

    def test_uses_latest_swing(self, bullish_state):
        assert get_structural_invalidation([], bullish_state, Direction.LONG) == 96.0
        assert get_structural_invalidation([], bullish_state, Direction.SHORT) == 104.0

    def test_falls_back_to_candle_extremes(self, neutral_state, candle_factory):
        candles = candle_factory([100, 101, 99, 102])

        assert get_structural_invalidation(candles, neutral_state, Direction.LONG) == 98.5
        assert get_structural_invalidation(candles, neutral_state, Direction.SHORT) == 102.5

    def test_swing_pushed_out_by_buffer(self, bullish_state, rising_candles):
        stop = get_structural_invalidation(rising_candles, bullish_state, Direction.LONG)
        assert stop < 96.0

    def test_no_data_raises(self, neutral_state):
        with pytest.raises(InsufficientDataError):
            get_structural_invalidation([], neutral_state, Direction.LONG)


class TestStandardTargets:
    """Test liquidity-first target generation."""

    def test_long_targets_from_pools(self, bullish_state):
        t1, t2 = generate_standard_targets(100.0, 96.0, bullish_state, Direction.LONG)

        assert (t1.price, t1.label) == (110.0, "T1: Liquidity")
        assert (t2.price, t2.label) == (120.0, "T2: Liquidity")

    def test_short_mixes_pool_and_multiple(self, bullish_state):
        t1, t2 = generate_standard_targets(100.0, 104.0, bullish_state, Direction.SHORT)

        assert (t1.price, t1.label) == (90.0, "T1: Liquidity")
        assert (t2.price, t2.label) == (84.0, "T2: 4R")

    def test_risk_multiples_without_pools(self, neutral_state):
        t1, t2 = generate_standard_targets(1.1, 1.0, neutral_state, Direction.LONG)

        assert t1.price == pytest.approx(1.3)
        assert t2.price == pytest.approx(1.5)
        assert t1.label == "T1: 2R"


class TestBuildSetup:
    """Test turning annotations into trade setups."""

    def test_default_annotations_build_setup(self, neutral_state, candle_factory):
        candles = candle_factory([100, 101, 99, 102])

        setup = RangeTrading().build_setup(candles, neutral_state, Direction.LONG)

        assert setup.strategy == "Range Trading"
        assert setup.direction is Bias.BULLISH
        assert setup.entry == 102
        assert setup.stop_loss == 98.5
        assert [t.price for t in setup.targets] == [109.0, 116.0]

    def test_no_candles_gives_none(self, neutral_state):
        assert RangeTrading().build_setup([], neutral_state, Direction.LONG) is None

    def test_insufficient_data_gives_none(self, neutral_state, candle_factory):
        module = RangeTrading()
        with patch.object(RangeTrading, "generate_annotations",
                          side_effect=InsufficientDataError("no swings")):
            assert module.build_setup(candle_factory([1.1, 1.2]), neutral_state,
                                      Direction.LONG) is None

    def test_risk_parameters_from_analysis(self):
        params = TrendContinuation().get_risk_parameters({"stop_loss": 95.0, "targets": [110, 120]})

        assert params.stop_loss == 95.0
        assert [t.price for t in params.targets] == [110.0, 120.0]
        assert params.risk_reward_range == (2.0, 3.5)

    def test_entry_and_invalidation_logic(self):
        module = RangeTrading()

        assert module.get_entry_logic().startswith("Enter near the range boundary")
        assert module.get_entry_logic({"stop_loss": 1.0}) == module.get_entry_logic()
        assert module.get_invalidation_logic() == "Invalid on acceptance outside the range"
        assert ChochReversal().get_invalidation_logic() == (
            "Invalid on a close beyond the structural stop")


class TestTrendContinuationAnnotations:
    """Test the reference module's chart annotations."""

    def test_long_annotations(self, bullish_state, rising_candles):
        annotations = TrendContinuation().generate_annotations(
            rising_candles, bullish_state, Direction.LONG
        )
        by_kind = {}
        for annotation in annotations:
            by_kind.setdefault(annotation.kind, []).append(annotation)

        zone = by_kind[AnnotationKind.ZONE][0]
        entry = by_kind[AnnotationKind.ENTRY_ZONE][0]
        stop = by_kind[AnnotationKind.STOP_LOSS][0]
        targets = by_kind[AnnotationKind.TARGET]

        assert zone.label == "DEMAND"
        assert entry.bottom < entry.price < entry.top
        assert stop.price < entry.price
        assert [t.price for t in targets] == [110.0, 120.0]
        assert targets[0].label == "Cluster: Equal highs"
        assert targets[1].label == "High Conviction: Weekly high"

    def test_setup_from_annotations(self, bullish_state, rising_candles):
        setup = TrendContinuation().build_setup(rising_candles, bullish_state, Direction.LONG)

        assert setup.direction is Bias.BULLISH
        assert setup.stop_loss < setup.entry < setup.targets[0].price

    def test_trendline_points_are_swing_lows(self, candle_factory):
        candles = candle_factory([105, 104, 103, 102, 101, 100, 101, 102, 103, 104, 105, 106])

        points = TrendContinuation().find_trendline_points(candles, Direction.LONG)

        assert points == [(candles[5].ts, 99.5), (candles[6].ts, 99.5)]
