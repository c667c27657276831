"""Strategy modules, the registry and asset-class adaptation."""

from .asset_class import AssetClass, detect_asset_class
from .base import Annotation, AnnotationKind, RiskParameters, StrategyModule, StrategyTag
from .registry import StrategyCategory, StrategyRegistry

__all__ = [
    "AssetClass",
    "detect_asset_class",
    "Annotation",
    "AnnotationKind",
    "RiskParameters",
    "StrategyModule",
    "StrategyTag",
    "StrategyCategory",
    "StrategyRegistry",
]
