"""In-memory host adapters used by the replay runner and tests."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from confluence.host.interfaces import Bar, Holding, Position
from confluence.strategy.models import AssetKind, Signal


@dataclass(frozen=True)
class PriceBar:
    """One stored bar.  ``present=False`` marks a gap in the feed."""

    time: datetime
    close: Decimal
    volume: Decimal
    present: bool = True


class InMemoryDataHandler:
    """Serves a fixed bar list to a strategy, one cursor step at a time.

    Streams contain every bar up to and including the cursor.  Call
    :meth:`next` before the first evaluation.
    """

    def __init__(
        self,
        bars: list[PriceBar],
        exchange: str = "kraken",
        asset: AssetKind = AssetKind.SPOT,
        pair: str = "BTC/USD",
    ) -> None:
        self._bars = list(bars)
        self._present = {b.time: i for i, b in enumerate(self._bars) if b.present}
        self._cursor = -1
        self.exchange = exchange
        self.asset = asset
        self.pair = pair

    def next(self) -> bool:
        """Advance one bar.  Returns ``False`` once the data is exhausted."""
        if self._cursor + 1 >= len(self._bars):
            return False
        self._cursor += 1
        return True

    def seek(self, index: int) -> None:
        """Move the cursor directly to bar *index*."""
        if not 0 <= index < len(self._bars):
            raise IndexError(f"bar index {index} out of range")
        self._cursor = index

    def latest(self) -> Bar:
        if self._cursor < 0:
            raise RuntimeError("no bar loaded; call next() first")
        bar = self._bars[self._cursor]
        return Bar(
            time=bar.time,
            close=bar.close,
            offset=self._cursor + 1,
            exchange=self.exchange,
            asset=self.asset,
            pair=self.pair,
        )

    def stream_close(self) -> list[Decimal]:
        return [b.close for b in self._bars[: self._cursor + 1]]

    def stream_volume(self) -> list[Decimal]:
        return [b.volume for b in self._bars[: self._cursor + 1]]

    def has_data_at_time(self, t: datetime) -> bool:
        index = self._present.get(t)
        return index is not None and index <= self._cursor


class InMemoryPortfolio:
    """Minimal position book: one size per instrument, no P&L."""

    def __init__(self) -> None:
        self.positions: list[Position] = []
        self.holdings: list[Holding] = []

    def get_positions(self, signal: Signal) -> list[Position]:
        return list(self.positions)

    def get_latest_holdings(self) -> list[Holding]:
        return list(self.holdings)

    def open(self, signal: Signal, size: Decimal) -> None:
        """Record *size* units held in *signal*'s instrument."""
        self.close(signal)
        if signal.asset is AssetKind.DERIVATIVE:
            self.positions.append(
                Position(signal.exchange, signal.asset, signal.pair, size)
            )
        else:
            self.holdings.append(
                Holding(signal.exchange, signal.asset, signal.pair, size)
            )

    def close(self, signal: Signal) -> None:
        """Drop whatever is held in *signal*'s instrument."""
        key = signal.key
        self.positions = [
            p for p in self.positions if (p.exchange, p.asset, p.pair) != key
        ]
        self.holdings = [
            h for h in self.holdings if (h.exchange, h.asset, h.pair) != key
        ]
