"""Confluence command-line entry point.

Replays a CSV of bars through the configured strategy and prints every
entry, exit and missing-data decision.
"""

import argparse
import logging
import sys
from decimal import Decimal
from typing import Optional, Sequence

from confluence.config import load_config, load_custom_settings
from confluence.replay.runner import ReplayRunner, load_bars_csv
from confluence.strategy.errors import StrategyError
from confluence.strategy.models import AssetKind, Direction, Signal
from confluence.strategy.registry import get_strategy

logger = logging.getLogger("confluence")


def format_signal(signal: Signal) -> str:
    """Render one decision as a single console line."""
    line = (
        f"{signal.time:%Y-%m-%d %H:%M} {signal.pair} "
        f"{signal.direction.value.upper():<12} close={signal.close_price:.2f}"
    )
    if signal.buy_limit is not None:
        line += f" limit={signal.buy_limit:.2f}"
    return f"{line} | {signal.reason}"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Confluence signal replay")
    parser.add_argument("--csv", required=True, help="CSV file with time,close,volume")
    parser.add_argument("--settings", help="JSON file of custom strategy settings")
    parser.add_argument("--pair", default="BTC/USD", help="Instrument name")
    parser.add_argument(
        "--asset",
        choices=[a.value for a in AssetKind],
        default=AssetKind.SPOT.value,
        help="Asset class (default: spot)",
    )
    parser.add_argument("--env", help="Path to a .env file")
    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments, run the replay and print decisions.

    Returns the process exit code.
    """
    args = _build_parser().parse_args(argv)
    config = load_config(args.env)

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    settings_path = args.settings or config.settings_path
    try:
        strategy = get_strategy(config.strategy_name)
        if settings_path:
            strategy.set_custom_settings(load_custom_settings(settings_path))
        bars = load_bars_csv(args.csv)
        runner = ReplayRunner(
            strategy,
            exchange=config.default_exchange,
            asset=AssetKind(args.asset),
            pair=args.pair,
            position_size=Decimal(str(config.position_size)),
        )
        signals = runner.run(bars)
    except (StrategyError, KeyError, ValueError, OSError) as exc:
        logger.error("Replay aborted: %s", exc)
        return 1

    for signal in signals:
        if signal.direction is not Direction.DO_NOTHING:
            print(format_signal(signal))
    return 0


if __name__ == "__main__":
    sys.exit(run_cli())
