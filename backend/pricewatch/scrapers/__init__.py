"""Extraction engine for tracked product pages.

This package provides:
- Base types shared by every strategy (PageSnapshot, RawExtractionResult)
- Store-specific extraction strategies and the hostname registry
- Challenge detection, allow-list validation and the fetch orchestrator
- Scheduler for the periodic price tracking pass
"""

from .base import (
    ExtractionStrategy,
    Identity,
    PageSnapshot,
    RawExtractionResult,
)
from .registry import StrategyRegistry, strategy_registry, get_strategy_registry

__all__ = [
    # Base classes
    "ExtractionStrategy",
    # Data structures
    "Identity",
    "PageSnapshot",
    "RawExtractionResult",
    # Registry
    "StrategyRegistry",
    "strategy_registry",
    "get_strategy_registry",
]
