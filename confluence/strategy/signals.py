"""Entry and exit evaluation: pure functions apart from the reason trail.

Given the latest indicator snapshot, decides whether a flat instrument
should be bought or an open position sold, and records why on the
``Signal``.

Entry uses a **mandatory trend gate** plus a vote over three flexible
signals (momentum, structure, volume): the gate must pass and at least
two of the three must agree.  Exit fires on either an RSI overbought
reversal or a close below the Bollinger middle band.
"""

from typing import Sequence

from confluence.strategy.models import ConditionState, Direction, IndicatorSnapshot, Signal
from confluence.strategy.settings import StrategySettings
from confluence.strategy.tracker import ConditionTracker


# RSI above this midline counts as momentum even when it is not rising.
MOMENTUM_MIDLINE = 50.0

# Structure accepts closes down to middle − 0.25 × the band multiplier.
STRUCTURE_TOLERANCE_FACTOR = 0.25

MIN_FLEXIBLE_SIGNALS = 2

# Limit sits slightly above the close so a discrete-time fill is likely.
BUY_LIMIT_PREMIUM = 1.001


def touched_lower_band(
    closes: Sequence[float],
    lower: Sequence[float],
    lookback: int,
) -> bool:
    """Check if a close touched the lower band in the last *lookback* bars.

    The current (latest) bar is excluded.  Returns ``False`` when either
    series is shorter than *lookback*: too little history never counts
    as a touch.
    """
    if len(closes) < lookback or len(lower) < lookback:
        return False

    for i in range(len(closes) - lookback, len(closes) - 1):
        if i < len(lower) and closes[i] <= lower[i]:
            return True
    return False


def evaluate_exit(
    signal: Signal,
    snapshot: IndicatorSnapshot,
    settings: StrategySettings,
) -> None:
    """Decide between Sell and hold for an open position.

    Sells on an RSI overbought reversal (previous RSI at or above the exit
    threshold and now falling) or on a close below the middle band.  Both
    reasons are recorded when both apply.
    """
    overbought_reversal = (
        snapshot.prev_rsi >= settings.rsi_exit_overbought
        and snapshot.rsi < snapshot.prev_rsi
    )
    structure_breakdown = snapshot.close < snapshot.bb_middle

    if not (overbought_reversal or structure_breakdown):
        signal.direction = Direction.DO_NOTHING
        signal.append_reason("Holding position - no exit signals")
        return

    signal.direction = Direction.SELL
    if overbought_reversal:
        signal.append_reason(
            f"Exit: RSI overbought reversal "
            f"({snapshot.prev_rsi:.2f}->{snapshot.rsi:.2f})"
        )
    if structure_breakdown:
        signal.append_reason(
            f"Exit: Close below BB middle "
            f"({snapshot.close:.2f} < {snapshot.bb_middle:.2f})"
        )


def evaluate_entry(
    signal: Signal,
    snapshot: IndicatorSnapshot,
    touched_lower: bool,
    settings: StrategySettings,
    tracker: ConditionTracker,
) -> ConditionState:
    """Decide between Buy and doing nothing for a flat instrument.

    Args:
        signal: Receives the direction, reasons and (on Buy) the limit.
        snapshot: Latest indicator readings.
        touched_lower: Result of :func:`touched_lower_band`.
        settings: Strategy parameters.
        tracker: This instrument's condition tracker; updated in place.

    Returns:
        The evaluated ``ConditionState``.
    """
    fast, slow = settings.ema_fast_period, settings.ema_slow_period

    trend_up = snapshot.ema_fast > snapshot.ema_slow
    rsi_momentum = (
        snapshot.rsi > MOMENTUM_MIDLINE or snapshot.rsi > snapshot.prev_rsi
    )
    tolerance = settings.bb_std_dev * STRUCTURE_TOLERANCE_FACTOR
    structure_ok = touched_lower and snapshot.close >= snapshot.bb_middle - tolerance
    volume_ok = snapshot.obv_slope > 0

    met: list[str] = []
    not_met: list[str] = []

    if trend_up:
        met.append(f"TREND✓(EMA{fast}>EMA{slow})")
    else:
        not_met.append(f"TREND✗(EMA{fast}<EMA{slow})")

    count = 0
    if rsi_momentum:
        met.append(f"MOMENTUM✓(RSI:{snapshot.rsi:.1f})")
        count += 1
    else:
        not_met.append(f"MOMENTUM✗(RSI:{snapshot.rsi:.1f})")

    if structure_ok:
        met.append("STRUCTURE✓(touched_lower+tolerance)")
        count += 1
    elif touched_lower:
        not_met.append(f"STRUCTURE✗(touched✓,price<tolerance:{snapshot.close:.0f})")
    else:
        not_met.append("STRUCTURE✗(no_lower_touch)")

    if volume_ok:
        met.append(f"VOLUME✓(OBV_slope:{snapshot.obv_slope:.1f})")
        count += 1
    else:
        not_met.append(f"VOLUME✗(OBV_slope:{snapshot.obv_slope:.1f})")

    signal.append_reason(
        f"GATE[Trend:{_flag(trend_up)}] SIGNALS[{count}/3]: "
        f"MET[{', '.join(met)}] NOT_MET[{', '.join(not_met)}]"
    )

    state = ConditionState(
        trend_up=trend_up,
        rsi_momentum=rsi_momentum,
        structure_ok=structure_ok,
        volume_ok=volume_ok,
        condition_count=count,
    )
    changes = tracker.update(state)
    if changes:
        signal.append_reason(f"STATE_CHANGES: {', '.join(changes)}")

    if trend_up and count >= MIN_FLEXIBLE_SIGNALS:
        signal.direction = Direction.BUY
        signal.buy_limit = snapshot.close * BUY_LIMIT_PREMIUM
        signal.append_reason(
            f"ENTRY SIGNAL: Trend gate passed + {count}/3 signals met"
        )
    else:
        signal.direction = Direction.DO_NOTHING
        if not trend_up:
            signal.append_reason(
                f"No entry: Trend gate failed (need EMA{fast}>EMA{slow})"
            )
        else:
            signal.append_reason(
                f"No entry: Only {count}/3 signals met (need {MIN_FLEXIBLE_SIGNALS}+)"
            )

    return state


def format_indicator_summary(
    snapshot: IndicatorSnapshot,
    touched_lower: bool,
    settings: StrategySettings,
) -> str:
    """One-line dump of every indicator value used by the decision."""
    return (
        f"Indicators: EMA{settings.ema_fast_period}={snapshot.ema_fast:.2f} "
        f"EMA{settings.ema_slow_period}={snapshot.ema_slow:.2f} "
        f"RSI={snapshot.rsi:.2f}(prev={snapshot.prev_rsi:.2f}) "
        f"BB_mid={snapshot.bb_middle:.2f} Close={snapshot.close:.2f} "
        f"OBV_slope={snapshot.obv_slope:.4f} touched_lower={_flag(touched_lower)}"
    )


def _flag(value: bool) -> str:
    return "true" if value else "false"
