"""Strategy error types.

Host query failures are not wrapped here: whatever the data handler or
portfolio raises propagates to the caller unchanged.
"""


class StrategyError(Exception):
    """Base class for errors raised by the signal engine."""


class NilInputError(StrategyError):
    """Raised when an evaluation is requested without a data handler."""


class DataGapTooLongError(StrategyError):
    """Raised when a forward-fill streak would distort every indicator."""

    def __init__(self, min_period: int, timestamp: str) -> None:
        self.min_period = min_period
        self.timestamp = timestamp
        super().__init__(
            f"missing data exceeds minimum period length of {min_period} "
            f"at {timestamp} and will distort results"
        )


class NegativeVolumeError(StrategyError):
    """Raised when a volume series contains a negative sample."""


class InvalidConfigError(StrategyError):
    """Base class for rejected strategy settings."""


class UnknownSettingError(InvalidConfigError):
    """A custom setting name the strategy does not recognise."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"unknown custom setting: {key}")


class InvalidSettingValueError(InvalidConfigError):
    """A recognised setting supplied with an unusable value."""

    def __init__(self, key: str, expected: str = "a number") -> None:
        self.key = key
        super().__init__(f"invalid {key} value: expected {expected}")
