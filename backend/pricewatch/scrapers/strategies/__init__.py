"""Extraction strategies.

GenericStrategy handles any page through Open Graph metadata; every other
strategy adds store markup and structured-data tiers on top of it.
"""

from .generic import GenericStrategy
from .store import StoreStrategy
from .amazon import AmazonStrategy
from .ebay import EbayStrategy
from .swappie import SwappieStrategy
from .backmarket import BackMarketStrategy
from .unieuro import UnieuroStrategy
from .eprice import EPriceStrategy
from .zalando import ZalandoStrategy
from .aliexpress import AliExpressStrategy
from .juice import JuiceStrategy
from .mediaworld import MediaWorldStrategy
from .refurbed import RefurbedStrategy
from .smartgeneration import SmartGenerationStrategy
from .reworklabs import ReworkLabsStrategy

__all__ = [
    "GenericStrategy",
    "StoreStrategy",
    "AmazonStrategy",
    "EbayStrategy",
    "SwappieStrategy",
    "BackMarketStrategy",
    "UnieuroStrategy",
    "EPriceStrategy",
    "ZalandoStrategy",
    "AliExpressStrategy",
    "JuiceStrategy",
    "MediaWorldStrategy",
    "RefurbedStrategy",
    "SmartGenerationStrategy",
    "ReworkLabsStrategy",
]
