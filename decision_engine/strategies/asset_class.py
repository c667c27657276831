"""
Asset-class adaptation.

Strategies behave differently across markets: stop hunts are endemic in
crypto, ranges are less reliable in indices. This module detects the asset
class of a symbol and exposes the per-class parameters and strategy
suitability multipliers used by the scoring pipeline and risk helpers.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class AssetClass(str, Enum):
    """Supported asset classes."""
    FOREX = "FOREX"
    CRYPTO = "CRYPTO"
    INDICES = "INDICES"
    METALS = "METALS"
    STOCKS = "STOCKS"


_CRYPTO = re.compile(r"BTC|ETH|SOL|ADA|XRP|DOGE|MATIC|LINK|DOT|AVAX|BNB", re.IGNORECASE)
_FOREX = re.compile(r"EUR|GBP|USD|JPY|CHF|AUD|NZD|CAD")
_INDICES = re.compile(r"SPX|NDX|DJI|DAX|FTSE|US30|NAS100", re.IGNORECASE)
_METALS = re.compile(r"XAU|XAG|GOLD|SILVER|PAXG", re.IGNORECASE)


@dataclass(frozen=True)
class AssetParameters:
    """Per-asset-class analysis parameters."""
    stop_loss_multiplier: float
    volatility_threshold: float
    session_based: bool
    killzones_active: bool
    default_risk_reward: tuple[float, float]


_PARAMETERS = {
    AssetClass.FOREX: AssetParameters(1.5, 0.015, True, True, (2.0, 3.0)),
    AssetClass.CRYPTO: AssetParameters(2.5, 0.030, False, False, (2.5, 4.0)),
    AssetClass.INDICES: AssetParameters(2.0, 0.010, True, False, (1.5, 2.5)),
    AssetClass.STOCKS: AssetParameters(2.2, 0.020, True, False, (2.0, 3.0)),
    AssetClass.METALS: AssetParameters(2.0, 0.012, True, True, (2.0, 3.0)),
}

# Strategy name -> multiplier, unlisted strategies stay at 1.0
_SUITABILITY = {
    AssetClass.FOREX: {
        "Liquidity Sweep": 1.2,
        "Order Block": 1.1,
        "Fair Value Gap (FVG)": 1.1,
    },
    AssetClass.CRYPTO: {
        "Liquidity Sweep": 1.3,
        "Fair Value Gap (FVG)": 1.2,
        "Range Trading": 0.8,
        "Order Block": 0.9,
        "Trend Continuation": 1.1,
    },
    AssetClass.INDICES: {
        "Trend Continuation": 1.2,
        "Range Trading": 0.7,
        "Liquidity Sweep": 0.9,
        "Structure Break & Retest": 1.1,
    },
}


def detect_asset_class(symbol: Optional[str]) -> AssetClass:
    """
    Detect the asset class of a trading symbol.

    Checks run crypto, metals, indices, forex in that order so that
    USD-quoted metals and indices are not mistaken for currency pairs;
    anything unmatched is treated as a stock.
    """
    if not symbol:
        return AssetClass.FOREX
    if _CRYPTO.search(symbol):
        return AssetClass.CRYPTO
    if _METALS.search(symbol):
        return AssetClass.METALS
    if _INDICES.search(symbol):
        return AssetClass.INDICES
    if _FOREX.search(symbol):
        return AssetClass.FOREX
    return AssetClass.STOCKS


def resolve_asset_class(value: Optional[str], symbol: Optional[str] = None) -> AssetClass:
    """Use an explicit asset class when valid, otherwise detect from the symbol."""
    if value:
        try:
            return AssetClass(value.upper())
        except ValueError:
            pass
    return detect_asset_class(symbol)


def get_asset_parameters(asset_class: AssetClass) -> AssetParameters:
    """Get parameters for an asset class, defaulting to forex."""
    return _PARAMETERS.get(asset_class, _PARAMETERS[AssetClass.FOREX])


def suitability_multiplier(strategy_name: str, asset_class: AssetClass) -> float:
    """Multiplier applied to a strategy's suitability for an asset class."""
    return _SUITABILITY.get(asset_class, {}).get(strategy_name, 1.0)
