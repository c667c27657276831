"""
End-to-end tests: snapshot -> selection -> setup -> signal -> persistence.
"""

import pytest

from decision_engine.engine import DecisionEngine
from decision_engine.models.direction import DominantBias
from decision_engine.signals.models import SignalStatus


@pytest.fixture
def overrides(tmp_path):
    return {
        "persistence": {"enabled": True, "db_path": str(tmp_path / "signals.db")},
        "performance": {"stats_path": str(tmp_path / "performance.json")},
    }


class TestAnalysisPipeline:
    """Test the full engine against a real SQLite store."""

    @pytest.mark.asyncio
    async def test_signal_survives_restart(self, tmp_path, overrides, bullish_state,
                                           rising_candles):
        engine = DecisionEngine(config_dir=tmp_path, overrides=overrides)
        await engine.start()

        result = engine.analyze(bullish_state, candles=rising_candles)
        assert result.bias is DominantBias.BULLISH

        candidate = result.selection.long[0]
        signal_id = engine.accept_setup("BTCUSDT", candidate, rising_candles, bullish_state)
        entry = engine.signal_manager.get_signals("BTCUSDT")[0].entry
        assert engine.on_price("BTCUSDT", entry) is True
        await engine.stop()

        restarted = DecisionEngine(config_dir=tmp_path, overrides=overrides)
        await restarted.start()

        restored, = restarted.signal_manager.get_active_signals()
        assert restored.id == signal_id
        assert restored.status is SignalStatus.ACTIVE
        assert [u.message for u in restored.updates] == ["Signal Registered", "Signal Activated"]
        await restarted.stop()

    @pytest.mark.asyncio
    async def test_outcomes_reweight_next_cycle(self, tmp_path, overrides, bullish_state,
                                                rising_candles):
        engine = DecisionEngine(config_dir=tmp_path, overrides=overrides)
        await engine.start()

        candidate = engine.analyze(bullish_state).selection.long[0]
        engine.accept_setup("BTCUSDT", candidate, rising_candles, bullish_state)
        signal = engine.signal_manager.get_signals("BTCUSDT")[0]
        engine.on_price("BTCUSDT", signal.entry)
        engine.on_price("BTCUSDT", signal.stop_loss - 1)
        await engine.stop()

        tracker = DecisionEngine(config_dir=tmp_path, overrides=overrides).performance_tracker
        stats = tracker.get_stats(candidate.strategy_name)
        assert stats.losses == 1
        assert stats.streak == -1
