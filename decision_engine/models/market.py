"""
Market-state snapshot model.

The market state is produced by an external analysis orchestrator once per
analysis cycle and is read-only for the engine. Every section is a frozen
dataclass so strategy evaluation and scenario scoring can be re-run
idempotently against the same snapshot. ``MarketState.from_dict`` converts
the orchestrator's mapping into this tree, validating types as it goes.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from ..errors import MalformedDataError
from .direction import Bias, normalize_direction


class Regime(str, Enum):
    """Coarse market-condition classification."""
    TRENDING = "TRENDING"
    RANGING = "RANGING"
    TRANSITIONAL = "TRANSITIONAL"


class PoolStrength(str, Enum):
    """Strength of a liquidity pool."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class RiskLevel(str, Enum):
    """Scheduled-news risk level."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class TechnicalValidity(str, Enum):
    """Whether technical analysis is currently trustworthy."""
    NORMAL = "NORMAL"
    DEGRADED = "DEGRADED"
    SUSPENDED = "SUSPENDED"


def _number(data: Mapping[str, Any], key: str, default: Optional[float] = None,
            section: str = "market_state") -> Optional[float]:
    value = data.get(key, default)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedDataError(
            f"{section}.{key} must be numeric",
            field_name=f"{section}.{key}",
            expected_format="number",
        )
    if math.isnan(value):
        return default
    return float(value)


def _required_number(data: Mapping[str, Any], key: str, section: str) -> float:
    value = _number(data, key, None, section)
    if value is None:
        raise MalformedDataError(
            f"{section}.{key} is required",
            field_name=f"{section}.{key}",
            expected_format="number",
        )
    return value


def _text(data: Mapping[str, Any], key: str, default: Optional[str] = None,
          section: str = "market_state") -> Optional[str]:
    value = data.get(key, default)
    if value is None:
        return default
    if isinstance(value, Enum):
        return str(value.value)
    if not isinstance(value, str):
        raise MalformedDataError(
            f"{section}.{key} must be a string",
            field_name=f"{section}.{key}",
            expected_format="string",
        )
    return value


def _enum(enum_cls: type, data: Mapping[str, Any], key: str, default: Enum,
          section: str = "market_state") -> Any:
    raw = _text(data, key, None, section)
    if raw is None:
        return default
    try:
        return enum_cls(raw.upper())
    except ValueError:
        raise MalformedDataError(
            f"{section}.{key} has unknown value {raw!r}",
            field_name=f"{section}.{key}",
            expected_format="|".join(m.value for m in enum_cls),
        )


def _section(data: Mapping[str, Any], key: str) -> Optional[Mapping[str, Any]]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise MalformedDataError(
            f"market_state.{key} must be a mapping",
            field_name=f"market_state.{key}",
            expected_format="mapping",
        )
    return value


def _items(data: Mapping[str, Any], key: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        raise MalformedDataError(
            f"market_state.{key} must be a list",
            field_name=f"market_state.{key}",
            expected_format="list",
        )
    for item in value:
        if key != "naked_pocs" and not isinstance(item, Mapping):
            raise MalformedDataError(
                f"market_state.{key} entries must be mappings",
                field_name=f"market_state.{key}",
                expected_format="mapping",
            )
    return list(value)


@dataclass(frozen=True)
class TrendState:
    """Trend direction, strength and short-term momentum."""
    direction: Bias = Bias.NEUTRAL
    strength: float = 0.0
    momentum: Bias = Bias.NEUTRAL

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TrendState":
        return cls(
            direction=normalize_direction(data.get("direction")),
            strength=_number(data, "strength", 0.0, "trend"),
            momentum=normalize_direction(data.get("momentum")),
        )


@dataclass(frozen=True)
class LiquidityPool:
    """Price level holding resting orders."""
    price: float
    strength: PoolStrength = PoolStrength.LOW
    label: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LiquidityPool":
        return cls(
            price=_required_number(data, "price", "liquidity_pools"),
            strength=_enum(PoolStrength, data, "strength", PoolStrength.LOW, "liquidity_pools"),
            label=_text(data, "label", "", "liquidity_pools"),
        )


@dataclass(frozen=True)
class StructureEvent:
    """Break of structure / change of character marker."""
    marker_type: str
    direction: str
    status: str = "CONFIRMED"
    price: Optional[float] = None

    @property
    def bias(self) -> Bias:
        return normalize_direction(self.direction)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StructureEvent":
        return cls(
            marker_type=(_text(data, "marker_type", "", "structures") or "").upper(),
            direction=_text(data, "direction", "", "structures"),
            status=(_text(data, "status", "CONFIRMED", "structures")).upper(),
            price=_number(data, "price", None, "structures"),
        )


@dataclass(frozen=True)
class SwingPoint:
    """Confirmed swing high or low."""
    kind: str
    price: float

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SwingPoint":
        return cls(
            kind=(_text(data, "kind", "", "swing_points") or "").upper(),
            price=_required_number(data, "price", "swing_points"),
        )


@dataclass(frozen=True)
class SessionInfo:
    """Active trading session and killzone."""
    active: Optional[str] = None
    killzone: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SessionInfo":
        return cls(
            active=_text(data, "active", None, "session"),
            killzone=_text(data, "killzone", None, "session"),
        )


@dataclass(frozen=True)
class VolumeAnalysis:
    """Order-flow volume classification."""
    is_institutional: bool = False
    sub_type: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "VolumeAnalysis":
        return cls(
            is_institutional=bool(data.get("is_institutional", False)),
            sub_type=_text(data, "sub_type", None, "volume_analysis"),
        )


@dataclass(frozen=True)
class PriceMagnet:
    """Unfilled price obligation pulling price toward it."""
    price: float
    urgency: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PriceMagnet":
        return cls(
            price=_required_number(data, "price", "primary_magnet"),
            urgency=_number(data, "urgency", 0.0, "primary_magnet"),
        )


@dataclass(frozen=True)
class AmdCycle:
    """Accumulation / manipulation / distribution phase."""
    phase: str = "UNKNOWN"
    direction: Bias = Bias.NEUTRAL

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AmdCycle":
        return cls(
            phase=(_text(data, "phase", "UNKNOWN", "amd_cycle")).upper(),
            direction=normalize_direction(data.get("direction")),
        )


@dataclass(frozen=True)
class SentimentReading:
    """
    Crowd sentiment.

    ``bias`` keeps the raw label because contrarian readings are spelled
    ``CONTRARIAN_BULLISH`` / ``CONTRARIAN_BEARISH``.
    """
    bias: str = "NEUTRAL"
    confidence: float = 0.0
    score: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SentimentReading":
        return cls(
            bias=(_text(data, "bias", "NEUTRAL", "sentiment")).upper(),
            confidence=_number(data, "confidence", 0.0, "sentiment"),
            score=_number(data, "score", 0.0, "sentiment"),
        )


@dataclass(frozen=True)
class ConfidenceReading:
    """A directional reading with a confidence, used for on-chain, options flow and seasonality."""
    bias: Bias = Bias.NEUTRAL
    confidence: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], bias_key: str = "bias",
                  section: str = "reading") -> "ConfidenceReading":
        return cls(
            bias=normalize_direction(data.get(bias_key, data.get("bias"))),
            confidence=_number(data, "confidence", 0.0, section),
        )


@dataclass(frozen=True)
class VolumeProfile:
    """Point of control and value area."""
    poc: float
    vah: float
    val: float

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "VolumeProfile":
        return cls(
            poc=_required_number(data, "poc", "volume_profile"),
            vah=_required_number(data, "vah", "volume_profile"),
            val=_required_number(data, "val", "volume_profile"),
        )


@dataclass(frozen=True)
class Fundamentals:
    """Fundamental-event context supplied beside the market state."""
    impact_direction: Bias = Bias.NEUTRAL
    news_imminent: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Fundamentals":
        return cls(
            impact_direction=normalize_direction(data.get("impact_direction")),
            news_imminent=bool(data.get("news_imminent", False)),
        )


@dataclass(frozen=True)
class MarketState:
    """Immutable per-symbol/timeframe analysis snapshot."""
    symbol: str = ""
    timeframe: str = "1H"
    current_price: Optional[float] = None
    asset_class: Optional[str] = None

    trend: TrendState = field(default_factory=TrendState)
    regime: Regime = Regime.TRANSITIONAL
    volatility: Optional[str] = None
    htf_bias: Bias = Bias.NEUTRAL

    liquidity_pools: tuple[LiquidityPool, ...] = ()
    structures: tuple[StructureEvent, ...] = ()
    swing_points: tuple[SwingPoint, ...] = ()

    session: Optional[SessionInfo] = None
    macro_bias: Bias = Bias.NEUTRAL
    smt_divergence: Optional[Bias] = None
    volume_analysis: Optional[VolumeAnalysis] = None
    relative_strength: Optional[str] = None
    liquidity_sweep: Optional[str] = None
    primary_magnet: Optional[PriceMagnet] = None
    amd_cycle: Optional[AmdCycle] = None
    sentiment: Optional[SentimentReading] = None
    on_chain: Optional[ConfidenceReading] = None
    options_flow: Optional[ConfidenceReading] = None
    seasonality: Optional[ConfidenceReading] = None
    volume_profile: Optional[VolumeProfile] = None
    naked_pocs: tuple[float, ...] = ()

    news_risk: RiskLevel = RiskLevel.LOW
    technical_validity: TechnicalValidity = TechnicalValidity.NORMAL

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MarketState":
        """
        Build a snapshot from the orchestrator's mapping.

        Optional sections that are absent stay None. A missing trend section
        degrades to a neutral trend of strength 0.

        Raises:
            MalformedDataError: If a field has the wrong type or an unknown enum value
        """
        if not isinstance(data, Mapping):
            raise MalformedDataError(
                "market state must be a mapping",
                expected_format="mapping",
            )

        trend = _section(data, "trend")
        mtf = _section(data, "mtf")
        session = _section(data, "session")
        macro = _section(data, "macro_sentiment")
        smt = _section(data, "smt_divergence")
        volume = _section(data, "volume_analysis")
        rs = _section(data, "relative_strength")
        sweep = _section(data, "liquidity_sweep")
        magnet = _section(data, "primary_magnet")
        amd = _section(data, "amd_cycle")
        sentiment = _section(data, "sentiment")
        on_chain = _section(data, "on_chain")
        options_flow = _section(data, "options_flow")
        seasonality = _section(data, "seasonality")
        profile = _section(data, "volume_profile")

        naked_pocs = []
        for item in _items(data, "naked_pocs"):
            price = item.get("price") if isinstance(item, Mapping) else item
            naked_pocs.append(_required_number({"price": price}, "price", "naked_pocs"))

        return cls(
            symbol=_text(data, "symbol", ""),
            timeframe=_text(data, "timeframe", "1H"),
            current_price=_number(data, "current_price"),
            asset_class=_text(data, "asset_class"),
            trend=TrendState.from_dict(trend) if trend else TrendState(),
            regime=_enum(Regime, data, "regime", Regime.TRANSITIONAL),
            volatility=_text(data, "volatility"),
            htf_bias=normalize_direction(mtf.get("global_bias")) if mtf else Bias.NEUTRAL,
            liquidity_pools=tuple(LiquidityPool.from_dict(p) for p in _items(data, "liquidity_pools")),
            structures=tuple(StructureEvent.from_dict(s) for s in _items(data, "structures")),
            swing_points=tuple(SwingPoint.from_dict(s) for s in _items(data, "swing_points")),
            session=SessionInfo.from_dict(session) if session else None,
            macro_bias=normalize_direction(macro.get("bias")) if macro else Bias.NEUTRAL,
            smt_divergence=normalize_direction(smt.get("type")) if smt else None,
            volume_analysis=VolumeAnalysis.from_dict(volume) if volume else None,
            relative_strength=(_text(rs, "status", "NEUTRAL", "relative_strength")).upper() if rs else None,
            liquidity_sweep=(_text(sweep, "type", "", "liquidity_sweep")).upper() if sweep else None,
            primary_magnet=PriceMagnet.from_dict(magnet) if magnet else None,
            amd_cycle=AmdCycle.from_dict(amd) if amd else None,
            sentiment=SentimentReading.from_dict(sentiment) if sentiment else None,
            on_chain=ConfidenceReading.from_dict(on_chain, section="on_chain") if on_chain else None,
            options_flow=(ConfidenceReading.from_dict(options_flow, "flow_bias", "options_flow")
                          if options_flow else None),
            seasonality=(ConfidenceReading.from_dict(seasonality, "combined_bias", "seasonality")
                         if seasonality else None),
            volume_profile=VolumeProfile.from_dict(profile) if profile else None,
            naked_pocs=tuple(naked_pocs),
            news_risk=_enum(RiskLevel, data, "news_risk", RiskLevel.LOW),
            technical_validity=_enum(TechnicalValidity, data, "technical_validity",
                                     TechnicalValidity.NORMAL),
        )
