"""Confluence scoring, strategy selection and performance weighting."""

from .performance import StrategyPerformanceTracker
from .rules import DEFAULT_RULES, ScoringContext, ScoringRule
from .selector import CandidateEvaluation, StrategySelection, StrategySelector

__all__ = [
    "StrategyPerformanceTracker",
    "DEFAULT_RULES",
    "ScoringContext",
    "ScoringRule",
    "CandidateEvaluation",
    "StrategySelection",
    "StrategySelector",
]
