"""Missing-data repair for price and volume series: pure function, no I/O."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Sequence, Union

from confluence.strategy.errors import DataGapTooLongError, NegativeVolumeError

logger = logging.getLogger("confluence.strategy")

Number = Union[Decimal, float, int]


def sanitize_series(
    values: Sequence[Number],
    timestamp: datetime,
    min_period: int,
    *,
    allow_negative: bool = True,
) -> list[float]:
    """Forward-fill zero samples and convert the series to floats.

    A zero at index ``i > min_period`` is replaced with the previous
    (already filled) value.  Earlier zeros pass through untouched since no
    indicator is valid there yet.  Only exact zeros are repaired.

    Args:
        values: Chronological samples (oldest first).
        timestamp: Evaluation time, used in the error message.
        min_period: Slowest indicator period; also the longest fill
            streak tolerated.
        allow_negative: ``False`` for volume series.

    Returns:
        A new list of floats, same length as *values*.

    Raises:
        DataGapTooLongError: the fill streak reached *min_period*.
        NegativeVolumeError: a negative sample with ``allow_negative=False``.
    """
    filled: list[float] = []
    streak = 0

    for i, raw in enumerate(values):
        if not allow_negative and raw < 0:
            raise NegativeVolumeError(
                f"negative volume {raw} at index {i} "
                f"({timestamp:%Y-%m-%d %H:%M:%S})"
            )
        if raw == 0 and i > min_period:
            value = filled[i - 1]
            streak += 1
        else:
            value = float(raw)
            streak = 0
        if streak >= min_period:
            logger.warning(
                "Fill streak of %d reached period %d at %s",
                streak, min_period, timestamp,
            )
            raise DataGapTooLongError(
                min_period, f"{timestamp:%Y-%m-%d %H:%M:%S}",
            )
        filled.append(value)

    return filled
