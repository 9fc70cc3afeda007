"""Condition-change tracking between consecutive entry evaluations.

Purely observational: the labels it produces go into the reason trail and
never influence a decision.
"""

from confluence.strategy.models import ConditionState


class ConditionTracker:
    """Remembers the last entry-condition state of one instrument.

    Starts all-false with a count of 0 and is only reset by building a new
    tracker.  Must not be shared between instruments.
    """

    def __init__(self) -> None:
        self._previous = ConditionState()

    @property
    def previous(self) -> ConditionState:
        """State stored by the last :meth:`update`."""
        return self._previous

    def update(self, current: ConditionState) -> list[str]:
        """Store *current* and return a label for every changed field."""
        prev = self._previous
        changes: list[str] = []

        if current.trend_up != prev.trend_up:
            changes.append("TREND_ON" if current.trend_up else "TREND_OFF")
        if current.rsi_momentum != prev.rsi_momentum:
            changes.append(
                "MOMENTUM_POSITIVE" if current.rsi_momentum else "MOMENTUM_NEGATIVE"
            )
        if current.structure_ok != prev.structure_ok:
            changes.append(
                "STRUCTURE_VALID" if current.structure_ok else "STRUCTURE_INVALID"
            )
        if current.volume_ok != prev.volume_ok:
            changes.append(
                "VOLUME_POSITIVE" if current.volume_ok else "VOLUME_NEGATIVE"
            )
        if current.condition_count != prev.condition_count:
            trend = (
                "IMPROVED"
                if current.condition_count > prev.condition_count
                else "DEGRADED"
            )
            changes.append(
                f"CONDITIONS_{trend}[{prev.condition_count}->{current.condition_count}]"
            )

        self._previous = current
        return changes
