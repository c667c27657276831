"""
Strategy performance tracking.

Completed signals report wins and losses per strategy. The tracker keeps a
rolling window of results and a signed streak, and turns them into a dynamic
weight that the ``performance_weight`` scoring rule multiplies in.
"""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Iterable, Optional

import orjson
import structlog

from ..config.defaults import PerformanceParams
from ..errors import PersistenceError
from ..utils.time import Clock, format_timestamp, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class StrategyStats:
    """Running results for one strategy."""
    wins: int = 0
    losses: int = 0
    streak: int = 0
    win_rate: float = 0.5
    recent_results: list[int] = field(default_factory=list)
    last_updated: Optional[str] = None


class StrategyPerformanceTracker:
    """Per-strategy win/loss tracking with optional JSON file persistence."""

    def __init__(self, params: Optional[PerformanceParams] = None,
                 clock: Optional[Clock] = None):
        self.params = params or PerformanceParams()
        self._clock = clock or utc_now
        self._stats: dict[str, StrategyStats] = {}
        self._path = Path(self.params.stats_path) if self.params.stats_path else None

        if self._path is not None:
            self.load()

    def get_stats(self, strategy: str) -> StrategyStats:
        """Stats for a strategy, created on first access."""
        if strategy not in self._stats:
            self._stats[strategy] = StrategyStats()
        return self._stats[strategy]

    def update_performance(self, strategy: str, is_win: bool) -> StrategyStats:
        """
        Record a completed trade.

        A win after a losing streak resets the streak to +1 and vice versa.
        """
        stats = self.get_stats(strategy)

        if is_win:
            stats.wins += 1
            stats.streak = stats.streak + 1 if stats.streak >= 0 else 1
        else:
            stats.losses += 1
            stats.streak = stats.streak - 1 if stats.streak <= 0 else -1

        stats.recent_results.append(1 if is_win else 0)
        if len(stats.recent_results) > self.params.window:
            del stats.recent_results[:-self.params.window]

        stats.win_rate = sum(stats.recent_results) / len(stats.recent_results)
        stats.last_updated = format_timestamp(self._clock())

        logger.info(
            "Strategy performance updated",
            strategy=strategy,
            streak=stats.streak,
            win_rate=round(stats.win_rate, 3),
        )

        if self._path is not None:
            try:
                self.save()
            except PersistenceError as e:
                logger.error("Failed to save strategy stats", error=str(e), path=str(self._path))

        return stats

    def get_dynamic_weight(self, strategy: str) -> float:
        """Multiplier in [min_weight, max_weight] from streak and recent win rate."""
        p = self.params
        stats = self.get_stats(strategy)
        weight = 1.0

        if stats.streak >= p.hot_streak:
            weight += 0.2
        if stats.streak <= p.cold_streak:
            weight -= 0.2

        if len(stats.recent_results) >= p.min_samples:
            if stats.win_rate >= p.high_win_rate:
                weight += 0.1
            if stats.win_rate <= p.low_win_rate:
                weight -= 0.2

        return min(max(weight, p.min_weight), p.max_weight)

    def get_all_weights(self, strategies: Iterable[str]) -> dict[str, float]:
        return {name: self.get_dynamic_weight(name) for name in strategies}

    def load(self) -> None:
        """Load stats from the JSON file; unreadable files are logged and ignored."""
        if self._path is None or not self._path.exists():
            return

        try:
            data = orjson.loads(self._path.read_bytes())
            for name, values in data.items():
                self._stats[name] = StrategyStats(**values)
        except (OSError, orjson.JSONDecodeError, TypeError, AttributeError) as e:
            logger.warning("Failed to load strategy stats", error=str(e), path=str(self._path))

    def save(self) -> None:
        """
        Write stats to the JSON file.

        Raises:
            PersistenceError: If the file cannot be written
        """
        if self._path is None:
            return

        data = {name: asdict(stats) for name, stats in self._stats.items()}
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))
        except OSError as e:
            raise PersistenceError(
                f"Cannot write strategy stats: {e}",
                operation="save",
                target=str(self._path),
            ) from e
