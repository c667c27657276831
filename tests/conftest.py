"""Pytest configuration and shared fixtures."""

import copy
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

import pytest

from decision_engine.models.candle import Candle
from decision_engine.models.market import MarketState


class FakeSignalStore:
    """In-memory async SignalRepository recording every call."""

    def __init__(self, active: List[Dict[str, Any]] = None):
        self.rows: Dict[str, Dict[str, Any]] = {s["id"]: copy.deepcopy(s) for s in active or []}
        self.saved: List[Dict[str, Any]] = []
        self.updates: List[tuple] = []

    async def load_active(self) -> List[Dict[str, Any]]:
        return [copy.deepcopy(s) for s in self.rows.values() if s.get("status") != "COMPLETED"]

    async def save(self, signal: Dict[str, Any]) -> None:
        self.saved.append(copy.deepcopy(signal))
        self.rows[signal["id"]] = copy.deepcopy(signal)

    async def update(self, signal_id: str, patch: Dict[str, Any]) -> None:
        self.updates.append((signal_id, copy.deepcopy(patch)))
        self.rows[signal_id].update(copy.deepcopy(patch))


class FailingSignalStore:
    """SignalRepository whose every call fails."""

    async def load_active(self):
        raise RuntimeError("store offline")

    async def save(self, signal):
        raise RuntimeError("store offline")

    async def update(self, signal_id, patch):
        raise RuntimeError("store offline")


class FixedClock:
    """Clock returning a controllable time."""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2024, 3, 4, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def fake_store() -> FakeSignalStore:
    return FakeSignalStore()


@pytest.fixture
def neutral_state_data() -> Dict[str, Any]:
    """Snapshot with no directional information at all."""
    return {
        "symbol": "EURUSD",
        "timeframe": "1H",
        "current_price": 1.1000,
        "trend": {"direction": "NEUTRAL", "strength": 0.3, "momentum": "NEUTRAL"},
        "regime": "RANGING",
    }


@pytest.fixture
def bullish_state_data() -> Dict[str, Any]:
    """Strong bullish trend with every confluence section populated."""
    return {
        "symbol": "BTCUSDT",
        "timeframe": "1H",
        "current_price": 100.0,
        "trend": {"direction": "BULLISH", "strength": 0.85, "momentum": "BULLISH"},
        "regime": "TRENDING",
        "volatility": "MODERATE",
        "mtf": {"global_bias": "BULLISH"},
        "liquidity_pools": [
            {"price": 110.0, "strength": "HIGH", "label": "Equal highs"},
            {"price": 120.0, "strength": "MEDIUM", "label": "Weekly high"},
            {"price": 90.0, "strength": "LOW", "label": "Equal lows"},
        ],
        "structures": [
            {"marker_type": "BOS", "direction": "up", "status": "CONFIRMED", "price": 95.0},
            {"marker_type": "BOS", "direction": "up", "status": "CONFIRMED", "price": 98.0},
        ],
        "swing_points": [
            {"kind": "LOW", "price": 96.0},
            {"kind": "HIGH", "price": 104.0},
        ],
        "session": {"active": "NEW_YORK", "killzone": "NY_OPEN"},
        "macro_sentiment": {"bias": "BULLISH"},
        "smt_divergence": {"type": "BULLISH"},
        "volume_analysis": {"is_institutional": True, "sub_type": "ABSORPTION"},
        "relative_strength": {"status": "LEADER"},
        "liquidity_sweep": {"type": "BULLISH_SWEEP"},
        "primary_magnet": {"price": 110.0, "urgency": 80},
        "amd_cycle": {"phase": "DISTRIBUTION", "direction": "BULLISH"},
        "sentiment": {"bias": "CONTRARIAN_BULLISH", "confidence": 0.8, "score": -60},
        "on_chain": {"bias": "BULLISH", "confidence": 0.9},
        "options_flow": {"flow_bias": "BULLISH", "confidence": 0.9},
        "seasonality": {"combined_bias": "BULLISH", "confidence": 0.9},
        "volume_profile": {"poc": 100.1, "vah": 105.0, "val": 101.0},
        "naked_pocs": [{"price": 108.0}],
        "news_risk": "LOW",
        "technical_validity": "NORMAL",
    }


@pytest.fixture
def neutral_state(neutral_state_data) -> MarketState:
    return MarketState.from_dict(neutral_state_data)


@pytest.fixture
def bullish_state(bullish_state_data) -> MarketState:
    return MarketState.from_dict(bullish_state_data)


def make_candles(closes: List[float], spread: float = 1.0) -> List[Candle]:
    """Candles around the given closes, one hour apart."""
    start = datetime(2024, 3, 1, tzinfo=timezone.utc)
    candles = []
    previous = closes[0]
    for i, close in enumerate(closes):
        candles.append(Candle(
            ts=start + timedelta(hours=i),
            open=previous,
            high=max(previous, close) + spread / 2,
            low=min(previous, close) - spread / 2,
            close=close,
            volume=1000.0,
        ))
        previous = close
    return candles


@pytest.fixture
def rising_candles() -> List[Candle]:
    """Sixty candles drifting up from 90 to ~100 with shallow pullbacks."""
    closes = [90 + i * 0.2 + (0.6 if i % 7 == 3 else 0.0) - (0.8 if i % 9 == 5 else 0.0)
              for i in range(60)]
    return make_candles(closes)


@pytest.fixture
def candle_factory():
    return make_candles


@pytest.fixture
def store_factory():
    return FakeSignalStore


@pytest.fixture
def failing_store() -> FailingSignalStore:
    return FailingSignalStore()
