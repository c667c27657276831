"""
Volatility measures used by strategy risk helpers.
"""
from .atr import calculate_atr, calculate_true_range

__all__ = ["calculate_atr", "calculate_true_range"]
