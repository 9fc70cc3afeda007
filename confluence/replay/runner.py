"""Replay runner: steps historical bars through a strategy.

Iterates bars chronologically for a single instrument and toggles a
nominal holding on Buy / Sell so the strategy sees both its entry and its
exit paths.  No orders, no sizing, no P&L.
"""

import logging
from decimal import Decimal
from pathlib import Path
from typing import Union

import pandas as pd

from confluence.host.memory import InMemoryDataHandler, InMemoryPortfolio, PriceBar
from confluence.strategy.base import StrategyProtocol
from confluence.strategy.models import AssetKind, Direction, Signal

logger = logging.getLogger("confluence.replay")

_REQUIRED_COLUMNS = ("time", "close", "volume")


class ReplayRunner:
    """Feeds one instrument's bars to *strategy* bar by bar.

    Args:
        strategy: Any ``StrategyProtocol`` implementation.
        exchange: Venue name stamped on every bar.
        asset: Asset class of the instrument.
        pair: Instrument name, e.g. ``"BTC/USD"``.
        position_size: Nominal size recorded after a Buy.
    """

    def __init__(
        self,
        strategy: StrategyProtocol,
        exchange: str = "kraken",
        asset: AssetKind = AssetKind.SPOT,
        pair: str = "BTC/USD",
        position_size: Decimal = Decimal("1"),
    ) -> None:
        self._strategy = strategy
        self._exchange = exchange
        self._asset = asset
        self._pair = pair
        self._position_size = position_size

    # ── Public API ───────────────────────────────────────────────────────

    def run(self, bars: list[PriceBar]) -> list[Signal]:
        """Evaluate every bar in order.

        Returns:
            One ``Signal`` per bar.  Errors raised by the strategy stop
            the replay.
        """
        handler = InMemoryDataHandler(bars, self._exchange, self._asset, self._pair)
        portfolio = InMemoryPortfolio()
        signals: list[Signal] = []

        while handler.next():
            signal = self._strategy.on_signal(handler, portfolio)
            if signal.direction is Direction.BUY:
                portfolio.open(signal, self._position_size)
            elif signal.direction is Direction.SELL:
                portfolio.close(signal)
            signals.append(signal)

        entries = sum(1 for s in signals if s.direction is Direction.BUY)
        exits = sum(1 for s in signals if s.direction is Direction.SELL)
        logger.info(
            "Replay complete: %d bars, %d entries, %d exits",
            len(signals), entries, exits,
        )
        return signals


def load_bars_csv(path: Union[str, Path]) -> list[PriceBar]:
    """Load ``time, close, volume`` rows from a CSV file.

    Rows with an empty close or volume become zero-valued bars marked as
    not present, which is how a feed gap reaches the strategy.

    Raises ``ValueError`` when a required column is missing.
    """
    frame = pd.read_csv(path)
    missing_cols = [c for c in _REQUIRED_COLUMNS if c not in frame.columns]
    if missing_cols:
        raise ValueError(f"CSV {path} is missing column(s): {', '.join(missing_cols)}")

    frame["time"] = pd.to_datetime(frame["time"], utc=True)
    gaps = frame["close"].isna() | frame["volume"].isna()
    frame[["close", "volume"]] = frame[["close", "volume"]].fillna(0)

    return [
        PriceBar(
            time=row.time.to_pydatetime(),
            close=Decimal(str(row.close)),
            volume=Decimal(str(row.volume)),
            present=not gap,
        )
        for row, gap in zip(frame.itertuples(index=False), gaps)
    ]
