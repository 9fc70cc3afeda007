"""Multi-indicator long-only strategy.

Implements ``StrategyProtocol``.  Combines an EMA trend gate, RSI
momentum, Bollinger structure and OBV volume confirmation into one
Buy / Sell / hold decision per instrument per time step.
"""

import logging
from typing import Any, Mapping, Optional, Sequence

from confluence.host.interfaces import DataHandler, PortfolioHandler
from confluence.strategy.base import BatchResult
from confluence.strategy.errors import InvalidConfigError, NilInputError
from confluence.strategy.indicators import compute_indicators
from confluence.strategy.models import Direction, InstrumentKey, Signal
from confluence.strategy.positions import has_open_position
from confluence.strategy.sanitizer import sanitize_series
from confluence.strategy.settings import StrategySettings
from confluence.strategy.signals import (
    evaluate_entry,
    evaluate_exit,
    format_indicator_summary,
    touched_lower_band,
)
from confluence.strategy.tracker import ConditionTracker

logger = logging.getLogger("confluence.strategy")


class MultiIndicatorStrategy:
    """Trend-gated, vote-based entry with RSI / Bollinger exits.

    Flow per call:
        1. Warm-up guard: need more bars than the longest indicator period.
        2. Missing bar at the current time → MissingData.
        3. Sanitize closes + volumes, compute indicators, check band touch.
        4. Open position → exit logic; flat → entry logic.

    Keeps one ``ConditionTracker`` per instrument, so instruments can be
    evaluated independently (and concurrently) by the same instance.
    Settings may only change before the first evaluation.
    """

    NAME = "multiindicator"
    DESCRIPTION = (
        "Multi-indicator strategy combining an EMA trend filter, RSI momentum, "
        "Bollinger Bands structure and OBV volume confirmation. Position sizing "
        "and stop losses are left to the host's risk management."
    )

    def __init__(self, settings: Optional[StrategySettings] = None) -> None:
        self._settings = settings or StrategySettings()
        self._trackers: dict[InstrumentKey, ConditionTracker] = {}
        self._evaluated = False

    # ── Identity ─────────────────────────────────────────────────────────

    def name(self) -> str:
        return self.NAME

    def description(self) -> str:
        return self.DESCRIPTION

    def supports_simultaneous_processing(self) -> bool:
        return True

    # ── Settings ─────────────────────────────────────────────────────────

    @property
    def settings(self) -> StrategySettings:
        return self._settings

    def set_defaults(self) -> None:
        """Restore every parameter to its default."""
        self._ensure_configurable()
        self._settings = StrategySettings()

    def set_custom_settings(self, custom: Mapping[str, Any]) -> None:
        """Apply named settings (e.g. from a strategy file).

        Raises ``InvalidConfigError`` (or a subclass) for unknown names,
        non-numeric values, or when evaluation has already begun.
        """
        self._ensure_configurable()
        self._settings = self._settings.apply_custom_settings(custom)
        logger.debug("Custom settings applied: %s", self._settings)

    def _ensure_configurable(self) -> None:
        if self._evaluated:
            raise InvalidConfigError(
                "settings cannot change once evaluation has begun"
            )

    # ── Evaluation ───────────────────────────────────────────────────────

    def tracker_for(self, key: InstrumentKey) -> ConditionTracker:
        """Return the condition tracker owned by *key*, creating it once."""
        return self._trackers.setdefault(key, ConditionTracker())

    def on_signal(
        self,
        data: Optional[DataHandler],
        portfolio: PortfolioHandler,
    ) -> Signal:
        """Evaluate one instrument at the data handler's current bar.

        Raises:
            NilInputError: *data* is ``None``.
            DataGapTooLongError: a series had too long a zero run.
            Exception: any host query failure, unchanged.
        """
        if data is None:
            raise NilInputError("no data handler supplied for evaluation")
        settings = self._settings
        latest = data.latest()
        self._evaluated = True

        signal = Signal(
            exchange=latest.exchange,
            asset=latest.asset,
            pair=latest.pair,
            time=latest.time,
            close_price=float(latest.close),
        )

        min_period = settings.ema_slow_period
        required = settings.required_periods
        if latest.offset <= required:
            signal.append_reason(
                f"Not enough data for signal generation, need {required} "
                f"periods, have {latest.offset}"
            )
            return signal

        if not data.has_data_at_time(latest.time):
            signal.direction = Direction.MISSING_DATA
            signal.append_reason(f"missing data at {latest.time}")
            logger.debug("%s: missing data at %s", signal.key, latest.time)
            return signal

        closes = sanitize_series(data.stream_close(), latest.time, min_period)
        volumes = sanitize_series(
            data.stream_volume(), latest.time, min_period, allow_negative=False,
        )
        snapshot = compute_indicators(closes, volumes, settings)
        touched = touched_lower_band(
            closes, snapshot.lower_band, settings.lookback_periods,
        )

        if has_open_position(signal, portfolio):
            evaluate_exit(signal, snapshot, settings)
        else:
            evaluate_entry(
                signal, snapshot, touched, settings, self.tracker_for(signal.key),
            )

        signal.append_reason(format_indicator_summary(snapshot, touched, settings))

        if signal.direction in (Direction.BUY, Direction.SELL):
            logger.info(
                "%s %s at %s, close=%.2f limit=%s",
                signal.key, signal.direction.value.upper(), signal.time,
                signal.close_price, signal.buy_limit,
            )
        else:
            logger.debug("%s: %s", signal.key, signal.reason)
        return signal

    def on_simultaneous_signals(
        self,
        handlers: Sequence[DataHandler],
        portfolio: PortfolioHandler,
    ) -> BatchResult:
        """Evaluate every handler independently for the same time step.

        A failure on one instrument is recorded in ``BatchResult.errors``
        and does not stop the rest.
        """
        result = BatchResult()
        for i, handler in enumerate(handlers):
            label = f"handler #{i}"
            try:
                if handler is not None:
                    latest = handler.latest()
                    label = str(
                        InstrumentKey(latest.exchange, latest.asset, latest.pair)
                    )
                result.signals.append(self.on_signal(handler, portfolio))
            except Exception as exc:
                logger.warning("Evaluation failed for %s: %s", label, exc)
                result.errors[label] = exc
        return result
