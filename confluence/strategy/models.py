"""Strategy data models: typed representations for strategy inputs and outputs."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import NamedTuple, Optional


class AssetKind(str, Enum):
    """Instrument class; decides how an open position is detected."""

    SPOT = "spot"
    DERIVATIVE = "derivative"


class Direction(str, Enum):
    """Outcome of one evaluation."""

    BUY = "buy"
    SELL = "sell"
    DO_NOTHING = "do_nothing"
    MISSING_DATA = "missing_data"


class InstrumentKey(NamedTuple):
    """Identity of one tradable instrument on one venue."""

    exchange: str
    asset: AssetKind
    pair: str

    def __str__(self) -> str:
        return f"{self.exchange} {self.asset.value} {self.pair}"


@dataclass
class Signal:
    """The decision produced for one instrument at one time step.

    ``reasons`` is append-only; use :meth:`append_reason`.
    """

    exchange: str
    asset: AssetKind
    pair: str
    time: datetime
    close_price: float
    direction: Direction = Direction.DO_NOTHING
    buy_limit: Optional[float] = None
    reasons: list[str] = field(default_factory=list)

    @property
    def key(self) -> InstrumentKey:
        return InstrumentKey(self.exchange, self.asset, self.pair)

    def append_reason(self, reason: str) -> None:
        self.reasons.append(reason)

    @property
    def reason(self) -> str:
        """All reasons joined into one line."""
        return ". ".join(self.reasons)


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Indicator readings at the latest bar.

    ``lower_band`` keeps the whole lower Bollinger series so recent band
    touches can be detected; every other field is a single value.
    """

    close: float
    ema_fast: float
    ema_slow: float
    rsi: float
    prev_rsi: float
    bb_middle: float
    obv_slope: float
    lower_band: tuple[float, ...] = ()


@dataclass(frozen=True)
class ConditionState:
    """Entry-condition flags from one entry evaluation."""

    trend_up: bool = False
    rsi_momentum: bool = False
    structure_ok: bool = False
    volume_ok: bool = False
    condition_count: int = 0  # flexible signals met, 0–3
