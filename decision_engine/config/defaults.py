"""Default configuration parameters for the strategy decision engine."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SelectorParams:
    """Strategy selector parameters."""
    min_suitability: float = 0.35                    # Candidates at or below are discarded
    top_n: int = 2                                   # Candidates kept per direction

    # Tie-break jitter, disabled unless jitter_pct > 0
    jitter_pct: float = 0.0                          # Max +/- fraction applied before clamp
    jitter_seed: Optional[int] = None                # Seed for reproducible jitter


@dataclass(frozen=True)
class ScenarioParams:
    """Scenario weighting parameters."""
    htf_weight: float = 40.0
    liquidity_weight: float = 30.0
    structure_weight: float = 20.0
    news_weight: float = 10.0

    viability_threshold: float = 50.0                # Scenarios below are killed
    liquidity_tolerance_pct: float = 0.01            # Pool must sit within 1% of target
    structure_window: int = 10                       # Recent structure events inspected
    max_alternatives: int = 2                        # Runners-up kept beside dominant


@dataclass(frozen=True)
class SignalParams:
    """Signal lifecycle parameters."""
    pnl_epsilon: float = 0.0001                      # Smaller pnl moves are not a change


@dataclass(frozen=True)
class PerformanceParams:
    """Strategy performance weighting parameters."""
    window: int = 20                                 # Rolling results kept per strategy
    hot_streak: int = 3
    cold_streak: int = -2
    min_samples: int = 5                             # Results needed before win-rate adjusts
    high_win_rate: float = 0.7
    low_win_rate: float = 0.3
    min_weight: float = 0.5
    max_weight: float = 1.5
    stats_path: Optional[str] = None                 # JSON file, None keeps stats in memory


@dataclass(frozen=True)
class PersistenceParams:
    """Signal persistence parameters."""
    enabled: bool = False
    db_path: str = "signals.db"


@dataclass(frozen=True)
class LoggingParams:
    """Logging parameters."""
    level: str = "INFO"
    format_json: bool = False


@dataclass(frozen=True)
class EngineConfig:
    """Complete engine configuration."""
    selector: SelectorParams
    scenario: ScenarioParams
    signal: SignalParams
    performance: PerformanceParams
    persistence: PersistenceParams
    logging: LoggingParams


def get_default_config() -> EngineConfig:
    """Get the default configuration instance."""
    return EngineConfig(
        selector=SelectorParams(),
        scenario=ScenarioParams(),
        signal=SignalParams(),
        performance=PerformanceParams(),
        persistence=PersistenceParams(),
        logging=LoggingParams(),
    )
