"""Strategy protocol and shared batch result type.

Defines the interface that all strategies must implement.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol, Sequence, runtime_checkable

from confluence.host.interfaces import DataHandler, PortfolioHandler
from confluence.strategy.models import Signal


@dataclass
class BatchResult:
    """Outcome of evaluating several instruments for the same time step.

    ``errors`` maps an instrument label to the exception that aborted its
    evaluation; the other instruments still produce ``signals``.
    """

    signals: list[Signal] = field(default_factory=list)
    errors: dict[str, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


@runtime_checkable
class StrategyProtocol(Protocol):
    """Interface that all signal strategies must satisfy."""

    def name(self) -> str:
        ...

    def set_custom_settings(self, custom: Mapping[str, Any]) -> None:
        ...

    def on_signal(
        self, data: Optional[DataHandler], portfolio: PortfolioHandler,
    ) -> Signal:
        """Evaluate one instrument at the current time step."""
        ...

    def on_simultaneous_signals(
        self, handlers: Sequence[DataHandler], portfolio: PortfolioHandler,
    ) -> BatchResult:
        """Evaluate several instruments independently."""
        ...
