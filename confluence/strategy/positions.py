"""Open-position detection with per-asset-class dust thresholds."""

from confluence.host.interfaces import PortfolioHandler
from confluence.strategy.models import AssetKind, Signal


# Sizes at or below these are dust and count as flat.
DERIVATIVE_DUST_THRESHOLD = 0.00001
SPOT_DUST_THRESHOLD = 0.01


def has_open_position(signal: Signal, portfolio: PortfolioHandler) -> bool:
    """Return True if *portfolio* holds a meaningful position in *signal*'s instrument.

    Derivatives are looked up through ``get_positions`` and compared on
    ``latest_size``; spot instruments through ``get_latest_holdings`` on
    ``base_size``.  Only entries matching exchange, asset and pair count.
    Query failures propagate.
    """
    key = signal.key
    if signal.asset is AssetKind.DERIVATIVE:
        for pos in portfolio.get_positions(signal):
            if (pos.exchange, pos.asset, pos.pair) == key:
                if float(pos.latest_size) > DERIVATIVE_DUST_THRESHOLD:
                    return True
        return False

    for holding in portfolio.get_latest_holdings():
        if (holding.exchange, holding.asset, holding.pair) == key:
            if float(holding.base_size) > SPOT_DUST_THRESHOLD:
                return True
    return False
