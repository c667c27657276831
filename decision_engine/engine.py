"""
Main decision engine coordinator.

Wires the strategy selector, scenario weighting and signal lifecycle
together behind one object:

    MarketState -> Selector -> candidates -> Scenario weighting -> bias
    accepted setups -> SignalManager <- price ticks
"""

import asyncio
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Sequence, Union

import structlog

from .config.defaults import EngineConfig
from .config.loader import ConfigLoader
from .config.validation import ConfigValidator
from .errors import DataQualityError, MissingDataError
from .logging.config import configure_logging
from .models.candle import Candle
from .models.direction import DominantBias
from .models.market import Fundamentals, MarketState
from .persistence.signal_store import SignalRepository, SqliteSignalStore
from .scenarios.weighting import (
    Analysis,
    ConflictResolution,
    DominantScenario,
    Scenario,
    ScenarioWeighting,
)
from .scoring.performance import StrategyPerformanceTracker
from .scoring.selector import CandidateEvaluation, StrategySelection, StrategySelector
from .signals.manager import SignalManager
from .signals.models import TradeSetup
from .strategies.registry import StrategyRegistry
from .utils.time import Clock

logger = structlog.get_logger(__name__)

SnapshotProvider = Callable[[str], Awaitable[Union[MarketState, Mapping[str, Any], None]]]


@dataclass(frozen=True)
class AnalysisResult:
    """Everything one analysis cycle produced for a symbol."""
    symbol: str
    selection: StrategySelection
    setups: tuple[TradeSetup, ...]
    dominant: DominantScenario
    conflict: ConflictResolution
    bias: DominantBias


def _as_market_state(value: Union[MarketState, Mapping[str, Any]]) -> MarketState:
    if isinstance(value, MarketState):
        return value
    return MarketState.from_dict(value)


def _as_candles(candles: Optional[Sequence[Any]]) -> list[Candle]:
    if not candles:
        return []
    return [c if isinstance(c, Candle) else Candle.from_dict(c) for c in candles]


class DecisionEngine:
    """
    Main coordinator for the strategy decision engine.

    Per-symbol configuration (``config/symbols.yaml``) is resolved lazily the
    first time a symbol is analyzed.
    """

    def __init__(
        self,
        config_dir: Optional[str] = None,
        overrides: Optional[dict[str, Any]] = None,
        registry: Optional[StrategyRegistry] = None,
        store: Optional[SignalRepository] = None,
        performance_tracker: Optional[StrategyPerformanceTracker] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Clock] = None,
        setup_logging: bool = False,
    ) -> None:
        """
        Initialize the engine.

        With ``setup_logging`` the configured logging section is applied to
        structlog before anything is logged.

        Raises:
            ValueError: If the configuration fails validation
        """
        self.logger = logger
        self.config_loader = ConfigLoader.create(config_dir)
        self.overrides = overrides or {}
        self.config = self._load_config(None)

        if setup_logging:
            configure_logging(level=self.config.logging.level,
                              format_json=self.config.logging.format_json)

        self.registry = registry if registry is not None else StrategyRegistry.default()
        self.performance_tracker = performance_tracker or StrategyPerformanceTracker(
            self.config.performance
        )
        self._rng = rng

        if store is None and self.config.persistence.enabled:
            store = SqliteSignalStore(self.config.persistence.db_path)

        self.signal_manager = SignalManager(
            store=store,
            config=self.config.signal,
            performance_tracker=self.performance_tracker,
            clock=clock,
        )

        self._selectors: dict[str, StrategySelector] = {}
        self._weightings: dict[str, ScenarioWeighting] = {}

        self.logger.info(
            "Decision engine initialized",
            strategies=len(self.registry),
            persistence=store is not None,
        )

    def _load_config(self, symbol: Optional[str]) -> EngineConfig:
        merged = self.config_loader.merge_config(symbol, self.overrides)
        errors = ConfigValidator.validate_config(merged)
        if errors:
            error_msgs = [f"{err.field}: {err.message} (got: {err.value})" for err in errors]
            self.logger.error("Configuration validation failed", symbol=symbol, errors=error_msgs)
            raise ValueError(f"Invalid configuration: {'; '.join(error_msgs)}")
        return self.config_loader.build_config(symbol, self.overrides)

    def _components_for(self, symbol: str) -> tuple[StrategySelector, ScenarioWeighting]:
        if symbol not in self._selectors:
            config = self._load_config(symbol) if symbol else self.config
            self._selectors[symbol] = StrategySelector(
                registry=self.registry,
                params=config.selector,
                performance_tracker=self.performance_tracker,
                rng=self._rng,
            )
            self._weightings[symbol] = ScenarioWeighting(config.scenario)
        return self._selectors[symbol], self._weightings[symbol]

    async def start(self) -> None:
        """Load persisted signals."""
        await self.signal_manager.init()

    async def stop(self) -> None:
        """Flush pending signal writes."""
        await self.signal_manager.dispose()
        self.logger.info("Decision engine stopped")

    def analyze(
        self,
        market_state: Union[MarketState, Mapping[str, Any]],
        fundamentals: Union[Fundamentals, Mapping[str, Any], None] = None,
        scenarios: Optional[Sequence[Any]] = None,
        candles: Optional[Sequence[Any]] = None,
        prediction_bias: Optional[str] = None,
    ) -> AnalysisResult:
        """
        Run one analysis cycle for a snapshot.

        Without explicit scenarios, each selected candidate becomes a scenario
        whose probability is its suitability and whose target is the first
        target of its setup (when candles are supplied).

        Raises:
            MalformedDataError: If the snapshot mapping is malformed
        """
        state = _as_market_state(market_state)
        if fundamentals is not None and not isinstance(fundamentals, Fundamentals):
            fundamentals = Fundamentals.from_dict(fundamentals)
        bars = _as_candles(candles)

        selector, weighting = self._components_for(state.symbol)
        selection = selector.select(state, fundamentals)

        setups = []
        candidate_targets: dict[int, Optional[float]] = {}
        for index, candidate in enumerate(selection.all):
            setup = candidate.strategy.build_setup(bars, state, candidate.direction) if bars else None
            if setup is not None:
                setups.append(setup)
            candidate_targets[index] = setup.targets[0].price if setup and setup.targets else None

        if scenarios is None:
            scenarios = [
                Scenario(
                    direction=candidate.direction.bias,
                    target=candidate_targets[index],
                    probability=candidate.suitability,
                    label=candidate.strategy_name,
                )
                for index, candidate in enumerate(selection.all)
            ]

        dominant = weighting.select_dominant_scenario(scenarios, state)
        conflict = weighting.resolve_conflicts(dominant.viable, state)

        if conflict.conflict and not prediction_bias:
            bias = DominantBias(conflict.resolution.direction.value)
        else:
            bias = weighting.force_dominant_bias(Analysis(
                market_state=state,
                setups=scenarios,
                prediction_bias=prediction_bias,
            ))

        self.logger.info(
            "Analysis complete",
            symbol=state.symbol,
            candidates=len(selection.all),
            dominant_score=dominant.score,
            conflict=conflict.conflict,
            bias=bias.value,
        )

        return AnalysisResult(
            symbol=state.symbol,
            selection=selection,
            setups=tuple(setups),
            dominant=dominant,
            conflict=conflict,
            bias=bias,
        )

    def accept_setup(
        self,
        symbol: str,
        candidate: CandidateEvaluation,
        candles: Sequence[Any],
        market_state: Union[MarketState, Mapping[str, Any]],
    ) -> Optional[str]:
        """Build the candidate's setup and hand it to the signal manager."""
        state = _as_market_state(market_state)
        setup = candidate.strategy.build_setup(_as_candles(candles), state, candidate.direction)
        if setup is None:
            self.logger.debug("No setup for candidate", symbol=symbol,
                              strategy=candidate.strategy_name)
            return None
        return self.signal_manager.track_signal(symbol, setup)

    def on_price(self, symbol: str, price: float) -> bool:
        """Forward a price tick to the signal lifecycle."""
        return self.signal_manager.update_market_price(symbol, price)

    async def scan(
        self,
        symbols: Iterable[str],
        provider: SnapshotProvider,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> dict[str, AnalysisResult]:
        """
        Analyze several symbols in turn.

        The provider is awaited for each symbol before scoring starts.
        Cancellation is checked between symbols only; a symbol with bad or
        missing data is skipped.
        """
        results: dict[str, AnalysisResult] = {}

        for symbol in symbols:
            if cancel_event is not None and cancel_event.is_set():
                self.logger.info("Scan cancelled", completed=len(results))
                break

            try:
                snapshot = await provider(symbol)
                if snapshot is None:
                    raise MissingDataError(f"No market state for {symbol}", data_type="market_state")
                results[symbol] = self.analyze(snapshot)

            except DataQualityError as e:
                self.logger.warning(
                    "Data quality issue during scan",
                    symbol=symbol,
                    error=str(e),
                    error_type=type(e).__name__,
                    context=getattr(e, 'context', {})
                )

            except Exception as e:
                self.logger.error(
                    "Unexpected error during scan",
                    symbol=symbol,
                    error=str(e),
                    error_type=type(e).__name__
                )

        return results
