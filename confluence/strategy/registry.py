"""Strategy registry: maps strategy names to classes.

Used by the CLI to instantiate the strategy named in ``Config.strategy_name``.
"""

from confluence.strategy.base import StrategyProtocol
from confluence.strategy.multi_indicator import MultiIndicatorStrategy


STRATEGY_REGISTRY: dict[str, type] = {
    MultiIndicatorStrategy.NAME: MultiIndicatorStrategy,
}


def get_strategy(name: str) -> StrategyProtocol:
    """Look up and instantiate a strategy by registry key.

    Raises ``KeyError`` if the strategy name is not registered.
    """
    if name not in STRATEGY_REGISTRY:
        raise KeyError(
            f"Unknown strategy '{name}'. "
            f"Available: {', '.join(STRATEGY_REGISTRY.keys())}"
        )
    return STRATEGY_REGISTRY[name]()
