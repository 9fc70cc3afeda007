"""Strategy settings: the typed parameter set and its custom-settings schema.

Custom settings arrive as a loosely-typed mapping (e.g. parsed from a JSON
strategy file).  They are validated once, here, and produce a new frozen
``StrategySettings``; the strategy never reads the raw mapping again.
"""

import math
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Callable, Mapping

from confluence.strategy.errors import InvalidSettingValueError, UnknownSettingError


EMA_FAST_PERIOD_KEY = "ema-fast-period"
EMA_SLOW_PERIOD_KEY = "ema-slow-period"
RSI_PERIOD_KEY = "rsi-period"
RSI_LONG_TRIGGER_KEY = "rsi-long-trigger"
RSI_EXIT_OVERBOUGHT_KEY = "rsi-exit-overbought"
BB_PERIOD_KEY = "bb-period"
BB_STD_DEV_KEY = "bb-std-dev"
OBV_SMOOTH_PERIOD_KEY = "obv-smooth-period"
LOOKBACK_PERIODS_KEY = "lookback-periods"


@dataclass(frozen=True)
class StrategySettings:
    """Parameters of the multi-indicator strategy.

    Periods are whole bar counts; thresholds and the band multiplier are
    plain floats.
    """

    ema_fast_period: int = 50
    ema_slow_period: int = 200
    rsi_period: int = 14
    rsi_long_trigger: float = 40.0
    rsi_exit_overbought: float = 70.0
    bb_period: int = 20
    bb_std_dev: float = 2.0
    obv_smooth_period: int = 10
    lookback_periods: int = 10

    @property
    def required_periods(self) -> int:
        """Bars needed before every indicator in the pipeline has a value.

        RSI needs one bar more than its period for the first delta.
        """
        return max(
            self.ema_fast_period,
            self.ema_slow_period,
            self.rsi_period + 1,
            self.bb_period,
            self.obv_smooth_period,
        )

    def apply_custom_settings(self, custom: Mapping[str, Any]) -> "StrategySettings":
        """Return a copy with *custom* applied.

        Only the named fields change.  The whole mapping is validated
        before anything is applied, so a rejected mapping leaves no
        partial update behind.

        Raises ``UnknownSettingError`` for an unrecognised name and
        ``InvalidSettingValueError`` for a non-numeric value.
        """
        updates: dict[str, Any] = {}
        for key, value in custom.items():
            if key not in _SCHEMA:
                raise UnknownSettingError(key)
            field_name, convert = _SCHEMA[key]
            updates[field_name] = convert(key, value)
        return replace(self, **updates)


def _number(key: str, value: Any) -> float:
    # bool is an int subclass but never a meaningful setting value
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidSettingValueError(key)
    if not math.isfinite(value):
        raise InvalidSettingValueError(key, "a finite number")
    return float(value)


def _period(key: str, value: Any) -> int:
    period = int(_number(key, value))
    if period < 1:
        raise InvalidSettingValueError(key, "a period of at least 1")
    return period


_SCHEMA: dict[str, tuple[str, Callable[[str, Any], Any]]] = {
    EMA_FAST_PERIOD_KEY: ("ema_fast_period", _period),
    EMA_SLOW_PERIOD_KEY: ("ema_slow_period", _period),
    RSI_PERIOD_KEY: ("rsi_period", _period),
    RSI_LONG_TRIGGER_KEY: ("rsi_long_trigger", _number),
    RSI_EXIT_OVERBOUGHT_KEY: ("rsi_exit_overbought", _number),
    BB_PERIOD_KEY: ("bb_period", _period),
    BB_STD_DEV_KEY: ("bb_std_dev", _number),
    OBV_SMOOTH_PERIOD_KEY: ("obv_smooth_period", _period),
    LOOKBACK_PERIODS_KEY: ("lookback_periods", _period),
}

SETTING_KEYS: tuple[str, ...] = tuple(_SCHEMA)
