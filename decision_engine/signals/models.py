"""
Signal lifecycle data models.

A ``TradeSetup`` is the immutable proposal produced by a strategy module; the
``SignalManager`` turns an accepted setup into a mutable ``Signal`` and moves
it through PENDING -> ACTIVE -> COMPLETED as prices arrive.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

from ..errors import MalformedDataError, StateTransitionError
from ..models.direction import Bias, normalize_direction
from ..utils.time import format_timestamp, parse_timestamp, utc_now


class SignalStatus(str, Enum):
    """Lifecycle state of a tracked signal."""
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = [SignalStatus.PENDING, SignalStatus.ACTIVE, SignalStatus.COMPLETED]


class SignalOutcome(str, Enum):
    """How a completed signal ended."""
    STOP_LOSS = "STOP_LOSS"
    TAKE_PROFIT = "TAKE_PROFIT"


def _optional_price(data: Mapping[str, Any], *keys: str) -> Optional[float]:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise MalformedDataError(
                f"setup.{key} must be numeric",
                field_name=f"setup.{key}",
                expected_format="number",
            )
        return float(value)
    return None


@dataclass(frozen=True)
class TargetLevel:
    """Take-profit level proposed by a setup."""
    price: float
    label: str = ""


@dataclass(frozen=True)
class TradeSetup:
    """Entry, stop and targets proposed for one strategy candidate."""
    strategy: str
    direction: Bias
    entry: Optional[float]
    stop_loss: Optional[float] = None
    targets: tuple[TargetLevel, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TradeSetup":
        """
        Build a setup from a loosely-typed mapping.

        Accepts ``stop_loss`` or ``stopLoss`` and targets given either as
        mappings with ``price``/``label`` or as bare prices.

        Raises:
            MalformedDataError: If a price is not numeric
        """
        targets = []
        for item in data.get("targets") or ():
            if isinstance(item, Mapping):
                price = _optional_price(item, "price")
                label = str(item.get("label") or "")
            else:
                price = _optional_price({"price": item}, "price")
                label = ""
            if price is not None:
                targets.append(TargetLevel(price=price, label=label))

        return cls(
            strategy=str(data.get("strategy") or ""),
            direction=normalize_direction(data.get("direction")),
            entry=_optional_price(data, "entry"),
            stop_loss=_optional_price(data, "stop_loss", "stopLoss"),
            targets=tuple(targets),
        )


@dataclass
class Target:
    """Take-profit level of a tracked signal. ``reached`` is never unset."""
    price: float
    label: str = ""
    reached: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"price": self.price, "label": self.label, "reached": self.reached}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Target":
        return cls(
            price=float(data["price"]),
            label=str(data.get("label") or ""),
            reached=bool(data.get("reached", False)),
        )


@dataclass
class SignalUpdate:
    """Timestamped entry in a signal's update log."""
    time: datetime
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"time": format_timestamp(self.time), "message": self.message}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SignalUpdate":
        return cls(
            time=parse_timestamp(data.get("time")) or utc_now(),
            message=str(data.get("message", "")),
        )


@dataclass
class Signal:
    """A tracked trade idea owned by the SignalManager."""
    id: str
    symbol: str
    strategy: str
    direction: Bias
    entry: float
    stop_loss: Optional[float]
    targets: list[Target]
    created_at: datetime
    status: SignalStatus = SignalStatus.PENDING
    current_price: Optional[float] = None
    pnl: float = 0.0
    outcome: Optional[SignalOutcome] = None
    activated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    updates: list[SignalUpdate] = field(default_factory=list)

    @property
    def is_long(self) -> bool:
        return self.direction is Bias.BULLISH

    def advance_to(self, status: SignalStatus, at: datetime) -> None:
        """
        Move the signal forward in its lifecycle.

        Raises:
            StateTransitionError: If the move is backward or repeated
        """
        if status.rank <= self.status.rank:
            raise StateTransitionError(
                f"Signal {self.id} cannot move from {self.status.value} to {status.value}",
                current_state=self.status.value,
                attempted_transition=status.value,
                context={"signal_id": self.id},
            )
        self.status = status
        if status is SignalStatus.ACTIVE:
            self.activated_at = at
        elif status is SignalStatus.COMPLETED:
            self.completed_at = at

    def log(self, message: str, at: datetime) -> None:
        self.updates.append(SignalUpdate(time=at, message=message))

    def to_dict(self) -> dict[str, Any]:
        """Serialize for persistence and subscribers."""
        return {
            "id": self.id,
            "symbol": self.symbol,
            "strategy": self.strategy,
            "direction": self.direction.value,
            "entry": self.entry,
            "stop_loss": self.stop_loss,
            "targets": [t.to_dict() for t in self.targets],
            "status": self.status.value,
            "current_price": self.current_price,
            "pnl": self.pnl,
            "outcome": self.outcome.value if self.outcome else None,
            "created_at": format_timestamp(self.created_at),
            "activated_at": format_timestamp(self.activated_at),
            "completed_at": format_timestamp(self.completed_at),
            "updates": [u.to_dict() for u in self.updates],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Signal":
        """Rebuild a signal from its persisted form."""
        outcome = data.get("outcome")
        return cls(
            id=str(data["id"]),
            symbol=str(data["symbol"]),
            strategy=str(data.get("strategy") or ""),
            direction=normalize_direction(data.get("direction")),
            entry=float(data["entry"]),
            stop_loss=_optional_price(data, "stop_loss"),
            targets=[Target.from_dict(t) for t in data.get("targets") or ()],
            created_at=parse_timestamp(data.get("created_at")) or utc_now(),
            status=SignalStatus(data.get("status", SignalStatus.PENDING.value)),
            current_price=_optional_price(data, "current_price"),
            pnl=float(data.get("pnl") or 0.0),
            outcome=SignalOutcome(outcome) if outcome else None,
            activated_at=parse_timestamp(data.get("activated_at")),
            completed_at=parse_timestamp(data.get("completed_at")),
            updates=[SignalUpdate.from_dict(u) for u in data.get("updates") or ()],
        )


@dataclass(frozen=True)
class SignalStats:
    """Aggregate outcome statistics over completed signals."""
    win_rate: float
    total: int
    wins: int
    losses: int
    completed: tuple[Signal, ...] = ()
