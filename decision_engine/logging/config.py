"""
Centralized logging configuration for the decision engine.

This module provides standardized logging configuration using structlog
for all components. Strategy scoring, scenario weighting and the signal
lifecycle all log through the loggers returned here so that candidate
decisions and state transitions share one structured format.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger, Processor

_CALLSITE = [
    structlog.processors.CallsiteParameter.FILENAME,
    structlog.processors.CallsiteParameter.LINENO,
]


def _build_processors(
    format_json: bool,
    include_timestamp: bool,
    include_caller: bool,
    extra_processors: Optional[list] = None,
) -> list[Processor]:
    """Processor chain ending in the JSON or console renderer."""
    chain: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if include_timestamp:
        chain.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
    if include_caller:
        chain.append(structlog.processors.CallsiteParameterAdder(parameters=_CALLSITE))
    chain.extend(extra_processors or ())

    renderer = (structlog.processors.JSONRenderer() if format_json
                else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    chain.append(renderer)
    return chain


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Route structlog through the standard library at the given level.

    Safe to call again; the root handler is replaced each time.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        format_json: Render one JSON object per line instead of console output
        include_timestamp: Add an ISO-8601 UTC timestamp
        include_caller: Add filename and line number
        extra_processors: Processors inserted before the renderer

    Raises:
        ValueError: If the level name is unknown
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        raise ValueError(f"Unknown log level: {level}")

    logging.basicConfig(level=log_level, stream=sys.stdout, format="%(message)s", force=True)

    structlog.configure(
        processors=_build_processors(format_json, include_timestamp, include_caller,
                                     extra_processors),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_scoring_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for strategy scoring decisions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for candidate scoring
    """
    logger = get_logger(name)

    return logger.bind(
        subsystem="scoring",
        audit_trail=True
    )


def get_state_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for signal lifecycle transitions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for state transitions
    """
    logger = get_logger(name)

    return logger.bind(
        subsystem="signal_lifecycle",
        audit_trail=True
    )


def log_candidate_decision(
    logger: FilteringBoundLogger,
    strategy: str,
    direction: str,
    suitability: float,
    accepted: bool,
    reason: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a candidate filter decision with standardized format.

    Args:
        logger: Structlog logger instance
        strategy: Name of the strategy module
        direction: LONG or SHORT
        suitability: Final clamped suitability
        accepted: Whether the candidate survived the threshold
        reason: Detailed reason for the decision
        context: Additional context data
    """
    bound_logger = logger.bind(
        strategy=strategy,
        direction=direction,
        suitability=round(suitability, 4),
        candidate_result="ACCEPT" if accepted else "REJECT",
        reason=reason,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.debug("Candidate decision")


def log_state_transition(
    logger: FilteringBoundLogger,
    signal_id: str,
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a signal state transition with standardized format.

    Args:
        logger: Structlog logger instance
        signal_id: ID of the signal transitioning
        from_state: Current state
        to_state: Target state
        trigger: What triggered the transition
        context: Additional context data
    """
    bound_logger = logger.bind(
        signal_id=signal_id,
        from_state=from_state,
        to_state=to_state,
        trigger=trigger,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("State transition")
