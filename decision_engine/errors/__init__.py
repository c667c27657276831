"""
Error classification for the decision engine.

This module provides a structured exception hierarchy separating data quality
problems in market-state snapshots (handled by degrading gracefully) from
system failures in strategy evaluation, signal state transitions and
persistence.
"""

from .data_quality import (
    DataQualityError,
    MissingDataError,
    MalformedDataError,
    InsufficientDataError,
)
from .system_failures import (
    SystemFailureError,
    StrategyEvaluationError,
    StateTransitionError,
    PersistenceError,
)

__all__ = [
    # Data Quality Errors
    "DataQualityError",
    "MissingDataError",
    "MalformedDataError",
    "InsufficientDataError",
    # System Failures
    "SystemFailureError",
    "StrategyEvaluationError",
    "StateTransitionError",
    "PersistenceError",
]
