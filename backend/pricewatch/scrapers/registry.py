"""Hostname -> extraction strategy registry."""

from typing import Dict, List, Optional, Tuple, Type

import structlog

from pricewatch.scrapers.base import ExtractionStrategy
from pricewatch.scrapers.strategies.generic import GenericStrategy


logger = structlog.get_logger(__name__)


class StrategyRegistry:
    """Dispatches a hostname to the strategy that knows its markup.

    Patterns are matched as substrings of the lowercased hostname, in
    registration order; the first match wins. Hostnames with no match get
    the generic strategy.
    """

    def __init__(self, default: Optional[ExtractionStrategy] = None):
        self._table: List[Tuple[str, Type[ExtractionStrategy]]] = []
        # Strategies are stateless, so one instance per class is shared
        self._instances: Dict[Type[ExtractionStrategy], ExtractionStrategy] = {}
        self.default = default or GenericStrategy()

    def register_strategy(self, pattern: str, strategy_class: Type[ExtractionStrategy]) -> None:
        """Register a strategy class for hostnames containing ``pattern``.

        Args:
            pattern: Hostname fragment (e.g. "amazon.")
            strategy_class: Strategy class (must inherit from ExtractionStrategy)
        """
        if not isinstance(strategy_class, type) or not issubclass(strategy_class, ExtractionStrategy):
            raise ValueError(f"Strategy class must inherit from ExtractionStrategy: {strategy_class}")

        pattern = pattern.lower()
        self._table = [(p, cls) for p, cls in self._table if p != pattern]
        self._table.append((pattern, strategy_class))
        logger.debug("strategy_registered", pattern=pattern, strategy=strategy_class.name)

    def for_domain(self, hostname: str) -> ExtractionStrategy:
        """Strategy for a hostname; the generic strategy when nothing matches."""
        hostname = (hostname or "").lower()
        for pattern, strategy_class in self._table:
            if pattern in hostname:
                instance = self._instances.get(strategy_class)
                if instance is None:
                    instance = strategy_class()
                    self._instances[strategy_class] = instance
                return instance
        return self.default

    def get_registered_patterns(self) -> List[str]:
        return [pattern for pattern, _ in self._table]

    def has_strategy(self, hostname: str) -> bool:
        """True when a store-specific strategy handles this hostname."""
        return self.for_domain(hostname) is not self.default


# Global registry instance, filled by register_all_strategies() at startup
strategy_registry = StrategyRegistry()


def get_strategy_registry() -> StrategyRegistry:
    """Get the global strategy registry instance."""
    return strategy_registry
