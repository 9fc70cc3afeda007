"""Deterministic tests for band-touch detection, entry/exit logic and
condition-change tracking.
"""

from datetime import datetime, timezone

import pytest

from confluence.strategy.models import (
    AssetKind,
    ConditionState,
    Direction,
    IndicatorSnapshot,
    Signal,
)
from confluence.strategy.settings import StrategySettings
from confluence.strategy.signals import (
    evaluate_entry,
    evaluate_exit,
    format_indicator_summary,
    touched_lower_band,
)
from confluence.strategy.tracker import ConditionTracker


# ── Helpers ──────────────────────────────────────────────────────────────


def _signal() -> Signal:
    return Signal(
        exchange="kraken",
        asset=AssetKind.SPOT,
        pair="BTC/USD",
        time=datetime(2023, 1, 1, 12, tzinfo=timezone.utc),
        close_price=50200.0,
    )


def _snapshot(**overrides) -> IndicatorSnapshot:
    """All four entry conditions met unless overridden."""
    values = dict(
        close=50200.0,
        ema_fast=50100.0,
        ema_slow=50000.0,
        rsi=42.0,
        prev_rsi=38.0,
        bb_middle=50000.0,
        obv_slope=1000.0,
    )
    values.update(overrides)
    return IndicatorSnapshot(**values)


def _enter(snapshot, touched=True, settings=None, tracker=None):
    signal = _signal()
    state = evaluate_entry(
        signal,
        snapshot,
        touched,
        settings or StrategySettings(),
        tracker or ConditionTracker(),
    )
    return signal, state


def _exit(snapshot, settings=None):
    signal = _signal()
    evaluate_exit(signal, snapshot, settings or StrategySettings())
    return signal


# ── Band touch ───────────────────────────────────────────────────────────


class TestBandTouch:

    CLOSES = [100, 99, 98, 95, 97, 100, 102]
    LOWER = [96] * 7

    def test_lookback_longer_than_history(self):
        assert touched_lower_band(self.CLOSES, self.LOWER, 10) is False

    def test_touch_within_lookback(self):
        assert touched_lower_band(self.CLOSES, self.LOWER, 5) is True

    def test_no_touch(self):
        closes = [100, 99, 98, 97, 98, 100, 102]
        assert touched_lower_band(closes, self.LOWER, 5) is False

    def test_touch_outside_lookback_ignored(self):
        # The 95 sits at index 3; lookback 3 only scans indices 4 and 5
        assert touched_lower_band(self.CLOSES, self.LOWER, 3) is False

    def test_current_bar_excluded(self):
        closes = [100, 100, 100, 100, 90]
        assert touched_lower_band(closes, [96] * 5, 3) is False

    def test_equal_counts_as_touch(self):
        closes = [100, 96, 100, 100]
        assert touched_lower_band(closes, [96] * 4, 4) is True

    def test_short_lower_series(self):
        assert touched_lower_band([90] * 6, [96] * 3, 5) is False


# ── Exit logic ───────────────────────────────────────────────────────────


class TestExit:

    def test_rsi_overbought_reversal_sells(self):
        signal = _exit(_snapshot(rsi=68.0, prev_rsi=72.0, close=50000.0, bb_middle=49000.0))
        assert signal.direction is Direction.SELL
        assert signal.reasons == ["Exit: RSI overbought reversal (72.00->68.00)"]

    def test_structure_breakdown_sells(self):
        signal = _exit(_snapshot(rsi=60.0, prev_rsi=62.0, close=48000.0, bb_middle=49000.0))
        assert signal.direction is Direction.SELL
        assert signal.reasons == ["Exit: Close below BB middle (48000.00 < 49000.00)"]

    def test_both_reasons_reported(self):
        signal = _exit(_snapshot(rsi=68.0, prev_rsi=75.0, close=48000.0, bb_middle=49000.0))
        assert signal.direction is Direction.SELL
        assert len(signal.reasons) == 2

    def test_no_exit_holds(self):
        signal = _exit(_snapshot(rsi=60.0, prev_rsi=58.0, close=50000.0, bb_middle=49000.0))
        assert signal.direction is Direction.DO_NOTHING
        assert signal.reasons == ["Holding position - no exit signals"]

    def test_threshold_is_inclusive(self):
        signal = _exit(_snapshot(rsi=69.9, prev_rsi=70.0, close=50000.0, bb_middle=49000.0))
        assert signal.direction is Direction.SELL

    def test_rising_overbought_rsi_holds(self):
        signal = _exit(_snapshot(rsi=80.0, prev_rsi=75.0, close=50000.0, bb_middle=49000.0))
        assert signal.direction is Direction.DO_NOTHING

    def test_custom_overbought_threshold(self):
        settings = StrategySettings(rsi_exit_overbought=80.0)
        signal = _exit(
            _snapshot(rsi=70.0, prev_rsi=75.0, close=50000.0, bb_middle=49000.0),
            settings,
        )
        assert signal.direction is Direction.DO_NOTHING


# ── Entry logic ──────────────────────────────────────────────────────────


class TestEntry:

    def test_all_conditions_buy(self):
        signal, state = _enter(_snapshot())
        assert signal.direction is Direction.BUY
        assert signal.buy_limit == pytest.approx(50200.0 * 1.001)
        assert signal.buy_limit > 50200.0
        assert state.condition_count == 3
        assert signal.reasons[0].startswith("GATE[Trend:true] SIGNALS[3/3]")
        assert signal.reasons[-1] == "ENTRY SIGNAL: Trend gate passed + 3/3 signals met"

    def test_trend_gate_blocks_entry(self):
        """3/3 flexible signals are not enough without the trend gate."""
        signal, state = _enter(_snapshot(ema_fast=49900.0))
        assert signal.direction is Direction.DO_NOTHING
        assert signal.buy_limit is None
        assert state.condition_count == 3
        assert signal.reasons[-1] == "No entry: Trend gate failed (need EMA50>EMA200)"

    def test_one_of_three_does_nothing(self):
        signal, state = _enter(_snapshot(rsi=45.0, prev_rsi=48.0), touched=False)
        assert signal.direction is Direction.DO_NOTHING
        assert state == ConditionState(True, False, False, True, 1)
        assert signal.reasons[-1] == "No entry: Only 1/3 signals met (need 2+)"

    def test_two_of_three_buys(self):
        # RSI falling but above the midline still counts as momentum
        signal, state = _enter(_snapshot(rsi=55.0, prev_rsi=60.0, obv_slope=10.0), touched=False)
        assert signal.direction is Direction.BUY
        assert state.condition_count == 2

    def test_structure_tolerance_band(self):
        # Default multiplier 2.0 → tolerance 0.5 below the middle band
        _, inside = _enter(_snapshot(close=49999.6))
        assert inside.structure_ok is True

        signal, outside = _enter(_snapshot(close=49999.4))
        assert outside.structure_ok is False
        assert "STRUCTURE✗(touched✓,price<tolerance:49999)" in signal.reasons[0]

    def test_no_touch_reason(self):
        signal, state = _enter(_snapshot(), touched=False)
        assert state.structure_ok is False
        assert "STRUCTURE✗(no_lower_touch)" in signal.reasons[0]

    def test_flat_obv_is_not_volume(self):
        _, state = _enter(_snapshot(obv_slope=0.0))
        assert state.volume_ok is False

    def test_rationale_uses_configured_periods(self):
        settings = StrategySettings(ema_fast_period=12, ema_slow_period=26)
        signal, _ = _enter(_snapshot(), settings=settings)
        assert "TREND✓(EMA12>EMA26)" in signal.reasons[0]

    def test_rationale_lists_met_and_not_met(self):
        signal, _ = _enter(_snapshot(obv_slope=-250.0))
        assert signal.reasons[0] == (
            "GATE[Trend:true] SIGNALS[2/3]: "
            "MET[TREND✓(EMA50>EMA200), MOMENTUM✓(RSI:42.0), "
            "STRUCTURE✓(touched_lower+tolerance)] "
            "NOT_MET[VOLUME✗(OBV_slope:-250.0)]"
        )


# ── Condition-change tracking ────────────────────────────────────────────


class TestConditionTracker:

    def test_first_update_reports_everything_that_turned_on(self):
        tracker = ConditionTracker()
        changes = tracker.update(ConditionState(True, True, True, True, 3))
        assert changes == [
            "TREND_ON",
            "MOMENTUM_POSITIVE",
            "STRUCTURE_VALID",
            "VOLUME_POSITIVE",
            "CONDITIONS_IMPROVED[0->3]",
        ]
        assert tracker.previous.condition_count == 3

    def test_trend_flip_reports_single_transition(self):
        tracker = ConditionTracker()
        _enter(_snapshot(), tracker=tracker)
        signal, _ = _enter(_snapshot(ema_fast=49900.0), tracker=tracker)

        state_changes = [r for r in signal.reasons if r.startswith("STATE_CHANGES")]
        assert state_changes == ["STATE_CHANGES: TREND_OFF"]

    def test_unchanged_state_adds_no_reason(self):
        tracker = ConditionTracker()
        _enter(_snapshot(), tracker=tracker)
        signal, _ = _enter(_snapshot(), tracker=tracker)
        assert not any(r.startswith("STATE_CHANGES") for r in signal.reasons)

    def test_degraded_count(self):
        tracker = ConditionTracker()
        tracker.update(ConditionState(True, True, True, True, 3))
        changes = tracker.update(ConditionState(True, True, False, False, 1))
        assert changes == [
            "STRUCTURE_INVALID",
            "VOLUME_NEGATIVE",
            "CONDITIONS_DEGRADED[3->1]",
        ]

    def test_history_does_not_change_decision(self):
        seeded = ConditionTracker()
        seeded.update(ConditionState(False, False, False, False, 0))
        seeded.update(ConditionState(True, True, True, True, 3))

        fresh_signal, _ = _enter(_snapshot(), tracker=ConditionTracker())
        seeded_signal, _ = _enter(_snapshot(), tracker=seeded)
        assert fresh_signal.direction is seeded_signal.direction is Direction.BUY


# ── Summary line ─────────────────────────────────────────────────────────


class TestIndicatorSummary:

    def test_summary_format(self):
        line = format_indicator_summary(_snapshot(), True, StrategySettings())
        assert line == (
            "Indicators: EMA50=50100.00 EMA200=50000.00 RSI=42.00(prev=38.00) "
            "BB_mid=50000.00 Close=50200.00 OBV_slope=1000.0000 touched_lower=true"
        )
