"""Technical indicators: EMA, RSI, Bollinger Bands, OBV. Pure functions, no I/O."""

import math

from confluence.strategy.models import IndicatorSnapshot
from confluence.strategy.settings import StrategySettings


def calculate_ema(values: list[float], period: int) -> list[float]:
    """Return the EMA of *values*, aligned index-for-index with the input.

    Smoothing factor ``k = 2 / (period + 1)``; the series starts at index
    ``period - 1`` from a simple mean of the first *period* values, and
    the slots before it hold ``nan``.

    Raises ``ValueError`` when *values* is shorter than *period*.
    """
    if len(values) < period:
        raise ValueError(
            f"Need at least {period} values for EMA({period}), "
            f"got {len(values)}"
        )

    k = 2.0 / (period + 1)
    ema: list[float] = [float("nan")] * len(values)

    seed = sum(values[:period]) / period
    ema[period - 1] = seed

    for i in range(period, len(values)):
        ema[i] = values[i] * k + ema[i - 1] * (1 - k)

    return ema


# ── RSI ──────────────────────────────────────────────────────────────────


def calculate_rsi(closes: list[float], period: int = 14) -> list[float]:
    """Return Wilder's RSI for *closes*, one entry per close.

    Average gain and loss start as plain means over the first *period*
    close-to-close changes and are then Wilder-smoothed.  A window with
    no losses reads 100.  The first *period* entries are ``nan``.

    Raises ``ValueError`` when there are fewer than ``period + 1`` closes.
    """
    if len(closes) < period + 1:
        raise ValueError(
            f"Need at least {period + 1} values for RSI({period}), "
            f"got {len(closes)}"
        )

    deltas = [closes[i] - closes[i - 1] for i in range(1, len(closes))]

    gains = [max(d, 0.0) for d in deltas]
    losses = [abs(min(d, 0.0)) for d in deltas]

    rsi: list[float] = [float("nan")] * len(closes)

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period

    def _rsi_from_avgs(ag: float, al: float) -> float:
        if al == 0:
            return 100.0
        rs = ag / al
        return 100.0 - 100.0 / (1.0 + rs)

    rsi[period] = _rsi_from_avgs(avg_gain, avg_loss)

    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        rsi[i + 1] = _rsi_from_avgs(avg_gain, avg_loss)

    return rsi


# ── Bollinger Bands ──────────────────────────────────────────────────────


def calculate_bollinger(
    closes: list[float],
    period: int = 20,
    std_dev: float = 2.0,
) -> tuple[list[float], list[float], list[float]]:
    """Return ``(upper, middle, lower)`` Bollinger series for *closes*.

    The middle band is the rolling mean over *period* closes; the outer
    bands sit *std_dev* population standard deviations away from it.
    Indices without a full window hold ``nan``.
    """
    if len(closes) < period:
        raise ValueError(
            f"Need at least {period} values for Bollinger({period}), "
            f"got {len(closes)}"
        )

    n = len(closes)

    upper: list[float] = [float("nan")] * n
    middle: list[float] = [float("nan")] * n
    lower: list[float] = [float("nan")] * n

    for i in range(period - 1, n):
        window = closes[i - period + 1 : i + 1]
        sma = sum(window) / period
        variance = sum((x - sma) ** 2 for x in window) / period
        sigma = math.sqrt(variance)

        middle[i] = sma
        upper[i] = sma + std_dev * sigma
        lower[i] = sma - std_dev * sigma

    return upper, middle, lower


# ── OBV ──────────────────────────────────────────────────────────────────


def calculate_obv(closes: list[float], volumes: list[float]) -> list[float]:
    """Calculate On-Balance Volume.

    Running total starting at 0: a bar's volume is added when its close
    is above the previous close, subtracted when below, and ignored when
    unchanged.

    Raises ``ValueError`` if the two series differ in length.
    """
    if len(closes) != len(volumes):
        raise ValueError(
            f"OBV needs aligned series, got {len(closes)} closes "
            f"and {len(volumes)} volumes"
        )
    if not closes:
        return []

    obv: list[float] = [0.0]
    for i in range(1, len(closes)):
        if closes[i] > closes[i - 1]:
            obv.append(obv[-1] + volumes[i])
        elif closes[i] < closes[i - 1]:
            obv.append(obv[-1] - volumes[i])
        else:
            obv.append(obv[-1])
    return obv


# ── Pipeline ─────────────────────────────────────────────────────────────


def compute_indicators(
    closes: list[float],
    volumes: list[float],
    settings: StrategySettings,
) -> IndicatorSnapshot:
    """Run every indicator over the full cleaned history.

    Always recomputes from scratch; only the last one or two samples of
    each series end up in the snapshot.  Previous RSI and the OBV slope
    fall back to ``0.0`` when fewer than two samples exist.
    """
    ema_fast = calculate_ema(closes, settings.ema_fast_period)
    ema_slow = calculate_ema(closes, settings.ema_slow_period)
    rsi = calculate_rsi(closes, settings.rsi_period)
    _, middle, lower = calculate_bollinger(
        closes, settings.bb_period, settings.bb_std_dev,
    )
    obv_smoothed = calculate_ema(
        calculate_obv(closes, volumes), settings.obv_smooth_period,
    )

    prev_rsi = rsi[-2] if len(rsi) > 1 else 0.0
    obv_slope = 0.0
    if len(obv_smoothed) > 1:
        obv_slope = obv_smoothed[-1] - obv_smoothed[-2]

    return IndicatorSnapshot(
        close=closes[-1],
        ema_fast=ema_fast[-1],
        ema_slow=ema_slow[-1],
        rsi=rsi[-1],
        prev_rsi=prev_rsi,
        bb_middle=middle[-1],
        obv_slope=obv_slope,
        lower_band=tuple(lower),
    )
