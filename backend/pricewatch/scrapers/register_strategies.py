"""Register all store strategies with the registry.

Imported during application startup (and by the CLI) so every known store
resolves to its dedicated strategy.
"""

from typing import Optional

import structlog

from pricewatch.scrapers.registry import StrategyRegistry, get_strategy_registry
from pricewatch.scrapers.strategies import (
    AmazonStrategy,
    EbayStrategy,
    SwappieStrategy,
    BackMarketStrategy,
    UnieuroStrategy,
    EPriceStrategy,
    ZalandoStrategy,
    AliExpressStrategy,
    JuiceStrategy,
    MediaWorldStrategy,
    RefurbedStrategy,
    SmartGenerationStrategy,
    ReworkLabsStrategy,
)

logger = structlog.get_logger(__name__)


# Ordered: the first hostname fragment that matches wins
STRATEGIES = [
    ("amazon.", AmazonStrategy),
    ("ebay.", EbayStrategy),
    ("swappie.com", SwappieStrategy),
    ("backmarket.", BackMarketStrategy),
    ("unieuro.it", UnieuroStrategy),
    ("eprice.it", EPriceStrategy),
    ("zalando.", ZalandoStrategy),
    ("aliexpress.", AliExpressStrategy),
    ("juice.it", JuiceStrategy),
    ("mediaworld.it", MediaWorldStrategy),
    ("refurbed.", RefurbedStrategy),
    ("smartgeneration.it", SmartGenerationStrategy),
    ("reworklabs.", ReworkLabsStrategy),
    ("rework-labs.", ReworkLabsStrategy),
]


def register_all_strategies(registry: Optional[StrategyRegistry] = None) -> StrategyRegistry:
    """Register every store strategy.

    Args:
        registry: Target registry, defaults to the global one

    Returns:
        The populated registry
    """
    registry = registry or get_strategy_registry()

    for pattern, strategy_class in STRATEGIES:
        try:
            registry.register_strategy(pattern, strategy_class)
        except Exception as e:
            logger.error(
                "strategy_registration_failed",
                pattern=pattern,
                error=str(e),
                exc_info=True,
            )

    logger.info(
        "all_strategies_registered",
        count=len(registry.get_registered_patterns()),
        patterns=registry.get_registered_patterns(),
    )
    return registry
