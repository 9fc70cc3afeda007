"""Host-side interfaces the signal engine consumes.

The host (a backtester or live runner) supplies market data and answers
position queries.  Anything it raises propagates through the strategy
unchanged.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol, Sequence, Union, runtime_checkable

from confluence.strategy.models import AssetKind, Signal

Quantity = Union[Decimal, float, int]


@dataclass(frozen=True)
class Bar:
    """The latest bar as reported by a data handler."""

    time: datetime
    close: Quantity
    offset: int  # bars processed so far, including this one
    exchange: str
    asset: AssetKind
    pair: str


@dataclass(frozen=True)
class Position:
    """A derivative position held by the host portfolio."""

    exchange: str
    asset: AssetKind
    pair: str
    latest_size: Quantity


@dataclass(frozen=True)
class Holding:
    """A spot holding; ``base_size`` is in base-currency units."""

    exchange: str
    asset: AssetKind
    pair: str
    base_size: Quantity


@runtime_checkable
class DataHandler(Protocol):
    """Market data for one instrument up to the current time cursor."""

    def latest(self) -> Bar:
        ...

    def stream_close(self) -> Sequence[Quantity]:
        ...

    def stream_volume(self) -> Sequence[Quantity]:
        ...

    def has_data_at_time(self, t: datetime) -> bool:
        ...


@runtime_checkable
class PortfolioHandler(Protocol):
    """Position and holding lookups."""

    def get_positions(self, signal: Signal) -> list[Position]:
        ...

    def get_latest_holdings(self) -> list[Holding]:
        ...
