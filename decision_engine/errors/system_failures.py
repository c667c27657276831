"""
System failure error classifications.

These exceptions represent failures inside the engine itself: a strategy
module breaking its contract, an attempted lifecycle regression, or the
persistence collaborator failing.
"""

from typing import Optional, Dict, Any


class SystemFailureError(Exception):
    """Base class for engine-level failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class StrategyEvaluationError(SystemFailureError):
    """A strategy module raised or returned a non-numeric suitability."""

    def __init__(self, message: str, strategy_name: Optional[str] = None,
                 direction: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.strategy_name = strategy_name
        self.direction = direction


class StateTransitionError(SystemFailureError):
    """Invalid signal transition that would break lifecycle monotonicity."""

    def __init__(self, message: str, current_state: Optional[str] = None,
                 attempted_transition: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.current_state = current_state
        self.attempted_transition = attempted_transition


class PersistenceError(SystemFailureError):
    """Database or file system persistence failures."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target
