"""Unit tests for the decision engine coordinator."""

import asyncio
from pathlib import Path

import pytest

from decision_engine.engine import DecisionEngine
from decision_engine.models.direction import Bias, DominantBias, Direction
from decision_engine.persistence.signal_store import SqliteSignalStore
from decision_engine.scenarios.weighting import Scenario
from decision_engine.signals.models import SignalOutcome
from decision_engine.strategies.registry import StrategyRegistry

SHIPPED_CONFIG = Path(__file__).resolve().parents[2] / "config"


@pytest.fixture
def engine(tmp_path):
    return DecisionEngine(config_dir=tmp_path)


class TestEngineSetup:
    """Test construction and configuration."""

    def test_invalid_overrides_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="min_suitability"):
            DecisionEngine(config_dir=tmp_path, overrides={"selector": {"min_suitability": 1.5}})

    def test_no_store_by_default(self, engine):
        assert engine.signal_manager.store is None
        assert len(engine.registry) == 12

    def test_empty_registry_is_kept(self, tmp_path):
        registry = StrategyRegistry()
        engine = DecisionEngine(config_dir=tmp_path, registry=registry)

        assert engine.registry is registry
        assert engine.analyze({"symbol": "BTCUSDT", "current_price": 100.0}).selection.all == ()

    def test_persistence_enabled_creates_sqlite_store(self, tmp_path):
        engine = DecisionEngine(config_dir=tmp_path, overrides={
            "persistence": {"enabled": True, "db_path": str(tmp_path / "signals.db")},
        })
        assert isinstance(engine.signal_manager.store, SqliteSignalStore)

    def test_symbol_config_applied_per_symbol(self):
        engine = DecisionEngine(config_dir=SHIPPED_CONFIG)

        btc_selector, _ = engine._components_for("BTCUSDT")
        eur_selector, eur_weighting = engine._components_for("EURUSD")

        assert btc_selector.params.min_suitability == 0.4
        assert eur_selector.params.min_suitability == 0.35
        assert eur_weighting.params.liquidity_tolerance_pct == 0.005
        assert engine._components_for("BTCUSDT")[0] is btc_selector


class TestAnalyze:
    """Test one analysis cycle."""

    def test_bullish_snapshot(self, engine, bullish_state_data):
        result = engine.analyze(bullish_state_data)

        assert result.symbol == "BTCUSDT"
        assert result.selection.all
        assert result.setups == ()
        assert result.dominant.bias is DominantBias.BULLISH
        assert result.bias is DominantBias.BULLISH

    def test_setups_built_from_candles(self, engine, bullish_state, rising_candles):
        result = engine.analyze(bullish_state, candles=rising_candles)

        assert result.setups
        for setup in result.setups:
            assert setup.direction in (Bias.BULLISH, Bias.BEARISH)
            assert setup.stop_loss is not None

    def test_candle_mappings_accepted(self, engine, bullish_state, rising_candles):
        rows = [
            {"ts": c.ts, "open": c.open, "high": c.high, "low": c.low, "close": c.close}
            for c in rising_candles
        ]
        assert engine.analyze(bullish_state, candles=rows).setups

    def test_prediction_bias_wins(self, engine, bullish_state):
        result = engine.analyze(bullish_state, prediction_bias="BEARISH")
        assert result.bias is DominantBias.BEARISH

    def test_explicit_scenarios(self, engine, bullish_state):
        scenarios = [
            Scenario(direction=Bias.BEARISH, target=90.0, probability=0.9),
            {"direction": "BULLISH", "target": 110.0, "probability": 0.4},
        ]
        result = engine.analyze(bullish_state, scenarios=scenarios)

        assert result.dominant.bias is DominantBias.BULLISH
        assert result.conflict.conflict is False
        assert result.bias is DominantBias.BULLISH

    def test_no_edge_without_scenarios(self, engine, bullish_state):
        result = engine.analyze(bullish_state, scenarios=[])

        assert result.dominant.bias is DominantBias.NO_EDGE
        assert result.bias is DominantBias.NO_EDGE

    def test_fundamentals_mapping(self, engine, neutral_state):
        result = engine.analyze(neutral_state,
                                fundamentals={"impact_direction": "BEARISH", "news_imminent": True})
        assert all(0.0 <= c.suitability <= 1.0 for c in result.selection.all)


class TestSignalFlow:
    """Test accepting setups and forwarding prices."""

    def test_accept_and_complete(self, engine, bullish_state, rising_candles):
        candidate = engine.analyze(bullish_state).selection.long[0]

        signal_id = engine.accept_setup("BTCUSDT", candidate, rising_candles, bullish_state)

        assert signal_id is not None
        assert candidate.direction is Direction.LONG
        assert engine.on_price("BTCUSDT", 200.0) is True
        completed, = engine.signal_manager.get_completed_signals()
        assert completed.id == signal_id
        assert completed.outcome is SignalOutcome.TAKE_PROFIT

    def test_accept_without_candles(self, engine, bullish_state):
        candidate = engine.analyze(bullish_state).selection.long[0]
        assert engine.accept_setup("BTCUSDT", candidate, [], bullish_state) is None

    @pytest.mark.asyncio
    async def test_start_and_stop(self, tmp_path, fake_store):
        engine = DecisionEngine(config_dir=tmp_path, store=fake_store)

        await engine.start()
        assert engine.signal_manager.initialized
        await engine.stop()


class TestScan:
    """Test multi-symbol scans."""

    @pytest.mark.asyncio
    async def test_bad_symbols_skipped(self, engine, bullish_state_data, neutral_state_data):
        snapshots = {
            "BTCUSDT": bullish_state_data,
            "EURUSD": neutral_state_data,
            "BAD": {"current_price": "not a number"},
            "MISSING": None,
        }

        async def provider(symbol):
            if symbol == "BROKEN":
                raise ConnectionError("feed down")
            return snapshots[symbol]

        results = await engine.scan(["BTCUSDT", "BAD", "MISSING", "BROKEN", "EURUSD"], provider)

        assert list(results) == ["BTCUSDT", "EURUSD"]

    @pytest.mark.asyncio
    async def test_cancel_between_symbols(self, engine, bullish_state_data):
        cancel = asyncio.Event()
        seen = []

        async def provider(symbol):
            seen.append(symbol)
            cancel.set()
            return dict(bullish_state_data, symbol=symbol)

        results = await engine.scan(["BTCUSDT", "ETHUSDT"], provider, cancel_event=cancel)

        assert list(results) == ["BTCUSDT"]
        assert seen == ["BTCUSDT"]

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, engine, bullish_state_data):
        cancel = asyncio.Event()
        cancel.set()

        async def provider(symbol):
            return bullish_state_data

        assert await engine.scan(["BTCUSDT"], provider, cancel_event=cancel) == {}
