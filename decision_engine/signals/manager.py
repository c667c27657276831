"""
Signal lifecycle manager.

Owns every tracked signal and evolves it on price ticks:

    PENDING --entry touched--> ACTIVE --stop touched--> COMPLETED (STOP_LOSS)
                                      --all targets--> COMPLETED (TAKE_PROFIT)

Persistence is fire-and-forget: in-memory state changes first and writes are
scheduled on the running loop, so a failed write never unwinds a transition.
"""

import asyncio
import copy
import uuid
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Union

from ..config.defaults import SignalParams
from ..errors import MalformedDataError
from ..logging.config import get_state_logger, log_state_transition
from ..models.direction import Bias
from ..persistence.signal_store import SignalRepository
from ..scoring.performance import StrategyPerformanceTracker
from ..utils.time import Clock, format_timestamp, to_epoch_ms, utc_now
from .models import (
    Signal,
    SignalOutcome,
    SignalStats,
    SignalStatus,
    Target,
    TradeSetup,
)

logger = get_state_logger(__name__)

Listener = Callable[[list[Signal]], Any]


class SignalManager:
    """Tracks accepted trade setups through their price-driven lifecycle."""

    def __init__(
        self,
        store: Optional[SignalRepository] = None,
        config: Optional[SignalParams] = None,
        performance_tracker: Optional[StrategyPerformanceTracker] = None,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.config = config or SignalParams()
        self.performance_tracker = performance_tracker
        self._clock = clock or utc_now

        self._active: dict[str, list[Signal]] = {}
        self._completed: list[Signal] = []
        self._listeners: dict[Listener, None] = {}
        self._pending_writes: set[asyncio.Task] = set()
        self._write_lock: Optional[asyncio.Lock] = None
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def init(self) -> None:
        """
        Load persisted active signals once.

        A failing store is logged; the manager remains usable with whatever
        is tracked in memory.
        """
        if self._initialized:
            return

        if self.store is not None:
            try:
                stored = await self.store.load_active()
            except Exception as e:
                logger.error("Signal manager initialization failed", error=str(e))
                return

            restored = 0
            for data in stored:
                try:
                    signal = Signal.from_dict(data)
                except (KeyError, TypeError, ValueError, MalformedDataError) as e:
                    logger.warning("Skipping unreadable stored signal",
                                   signal_id=data.get("id"), error=str(e))
                    continue
                if signal.status is SignalStatus.COMPLETED or self._find(signal.symbol, signal.strategy):
                    continue
                self._active.setdefault(signal.symbol, []).append(signal)
                restored += 1

            logger.info("Signal manager initialized", restored=restored)

        self._initialized = True
        self._notify()

    async def dispose(self) -> None:
        """Wait for in-flight writes and drop listeners."""
        if self._pending_writes:
            await asyncio.gather(*self._pending_writes)
        self._listeners.clear()

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """
        Register a listener called with the active-signal snapshot on change.

        Returns:
            A function that removes the listener
        """
        self._listeners[callback] = None

        def unsubscribe() -> None:
            self._listeners.pop(callback, None)

        return unsubscribe

    def track_signal(self, symbol: str,
                     setup: Union[TradeSetup, Mapping[str, Any], None]) -> Optional[str]:
        """
        Start tracking a setup as a PENDING signal.

        Setups without an entry price or direction, and a second setup of the
        same strategy on the same symbol, are ignored.

        Returns:
            The new signal id, or None when nothing was tracked
        """
        if setup is None:
            return None
        if not isinstance(setup, TradeSetup):
            try:
                setup = TradeSetup.from_dict(setup)
            except MalformedDataError as e:
                logger.debug("Ignoring malformed setup", symbol=symbol, error=str(e))
                return None

        if setup.entry is None or setup.entry <= 0:
            logger.debug("Ignoring setup without entry", symbol=symbol, strategy=setup.strategy)
            return None
        if setup.direction is Bias.NEUTRAL:
            logger.debug("Ignoring setup without direction", symbol=symbol, strategy=setup.strategy)
            return None
        if self._find(symbol, setup.strategy):
            logger.debug("Setup already tracked", symbol=symbol, strategy=setup.strategy)
            return None

        now = self._clock()
        signal = Signal(
            id=f"sig-{to_epoch_ms(now)}-{uuid.uuid4().hex[:5]}",
            symbol=symbol,
            strategy=setup.strategy,
            direction=setup.direction,
            entry=setup.entry,
            stop_loss=setup.stop_loss,
            targets=[Target(price=t.price, label=t.label) for t in setup.targets],
            created_at=now,
            current_price=setup.entry,
        )
        signal.log("Signal Registered", now)
        self._active.setdefault(symbol, []).append(signal)

        logger.info("Tracking signal", signal_id=signal.id, symbol=symbol,
                    strategy=signal.strategy, direction=signal.direction.value,
                    entry=signal.entry, stop_loss=signal.stop_loss)

        self._persist("save", signal.to_dict())
        self._notify()
        return signal.id

    def update_market_price(self, symbol: str, price: float) -> bool:
        """
        Apply a price tick to every signal of a symbol.

        Returns:
            True when any status, target, pnl or membership changed
        """
        signals = self._active.get(symbol)
        if not signals:
            return False

        now = self._clock()
        changed = False

        for signal in signals:
            signal.current_price = price

            if signal.status is SignalStatus.PENDING and self._crossed(signal, signal.entry, price):
                signal.advance_to(SignalStatus.ACTIVE, now)
                signal.log("Signal Activated", now)
                changed = True
                log_state_transition(logger, signal.id, SignalStatus.PENDING.value,
                                     SignalStatus.ACTIVE.value, "entry_touched",
                                     {"price": price, "entry": signal.entry})
                self._persist("update", signal.id, {
                    "status": signal.status.value,
                    "activated_at": format_timestamp(signal.activated_at),
                    "updates": [u.to_dict() for u in signal.updates],
                })

            if signal.status is not SignalStatus.ACTIVE:
                continue

            previous_pnl = signal.pnl
            signal.pnl = price - signal.entry if signal.is_long else signal.entry - price
            if abs(signal.pnl - previous_pnl) > self.config.pnl_epsilon:
                changed = True

            if signal.stop_loss is not None and self._crossed(signal, signal.stop_loss, price,
                                                               against=True):
                self._complete(signal, SignalOutcome.STOP_LOSS, now)
                changed = True
                continue

            hit = False
            for target in signal.targets:
                if not target.reached and self._crossed(signal, target.price, price):
                    target.reached = True
                    signal.log(f"Target Hit: {target.label or target.price}", now)
                    hit = True

            if signal.targets and all(t.reached for t in signal.targets):
                self._complete(signal, SignalOutcome.TAKE_PROFIT, now)
                changed = True
            elif hit:
                changed = True
                self._persist("update", signal.id, {
                    "targets": [t.to_dict() for t in signal.targets],
                    "updates": [u.to_dict() for u in signal.updates],
                })

        remaining = [s for s in signals if s.status is not SignalStatus.COMPLETED]
        if len(remaining) != len(signals):
            if remaining:
                self._active[symbol] = remaining
            else:
                del self._active[symbol]
            changed = True

        if changed:
            self._notify()
        return changed

    def get_active_signals(self) -> list[Signal]:
        """Snapshot of every active signal across symbols."""
        return [copy.deepcopy(s) for signals in self._active.values() for s in signals]

    def get_signals(self, symbol: str) -> list[Signal]:
        return [copy.deepcopy(s) for s in self._active.get(symbol, ())]

    def get_completed_signals(self) -> list[Signal]:
        return [copy.deepcopy(s) for s in self._completed]

    def get_stats(self) -> SignalStats:
        """Win rate is the TAKE_PROFIT share of completed signals, as a ratio."""
        total = len(self._completed)
        wins = sum(1 for s in self._completed if s.outcome is SignalOutcome.TAKE_PROFIT)
        return SignalStats(
            win_rate=wins / total if total else 0.0,
            total=total,
            wins=wins,
            losses=total - wins,
            completed=tuple(self.get_completed_signals()),
        )

    def _find(self, symbol: str, strategy: str) -> Optional[Signal]:
        for signal in self._active.get(symbol, ()):
            if signal.strategy == strategy:
                return signal
        return None

    @staticmethod
    def _crossed(signal: Signal, level: float, price: float, against: bool = False) -> bool:
        """Inclusive touch of a level in the trade direction, or against it."""
        upward = signal.is_long != against
        return price >= level if upward else price <= level

    def _complete(self, signal: Signal, outcome: SignalOutcome, now: datetime) -> None:
        previous = signal.status
        signal.advance_to(SignalStatus.COMPLETED, now)
        signal.outcome = outcome
        signal.log(f"Signal Completed: {outcome.value}", now)
        self._completed.append(signal)

        log_state_transition(logger, signal.id, previous.value, SignalStatus.COMPLETED.value,
                             outcome.value.lower(),
                             {"symbol": signal.symbol, "price": signal.current_price,
                              "pnl": signal.pnl})

        self._persist("update", signal.id, {
            "status": signal.status.value,
            "outcome": outcome.value,
            "completed_at": format_timestamp(signal.completed_at),
            "current_price": signal.current_price,
            "pnl": signal.pnl,
            "targets": [t.to_dict() for t in signal.targets],
            "updates": [u.to_dict() for u in signal.updates],
        })

        if self.performance_tracker is not None:
            self.performance_tracker.update_performance(
                signal.strategy, outcome is SignalOutcome.TAKE_PROFIT
            )

    def _persist(self, operation: str, *args: Any) -> None:
        """Schedule a store write without waiting for it. Writes apply in call order."""
        if self.store is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, persistence skipped", operation=operation)
            return

        if self._write_lock is None:
            self._write_lock = asyncio.Lock()
        task = loop.create_task(self._write(operation, *args))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _write(self, operation: str, *args: Any) -> None:
        async with self._write_lock:
            try:
                await getattr(self.store, operation)(*args)
            except Exception as e:
                logger.error("Signal persistence failed", operation=operation, error=str(e))

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.get_active_signals()
        for callback in list(self._listeners):
            try:
                callback(snapshot)
            except Exception as e:
                logger.error("Signal listener failed", error=str(e))
