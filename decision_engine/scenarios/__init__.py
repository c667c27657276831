"""Scenario scoring and dominant-bias resolution."""

from .weighting import (
    Analysis,
    ConflictResolution,
    DominantScenario,
    Scenario,
    ScenarioWeighting,
    ScoredScenario,
)

__all__ = [
    "Analysis",
    "ConflictResolution",
    "DominantScenario",
    "Scenario",
    "ScenarioWeighting",
    "ScoredScenario",
]
