"""
py_analytics/correlation.py
Pairwise asset correlation. The default strategy is a category heuristic,
not a statistical correlation: no price history backs it.
"""
import random
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from .models import AssetCorrelation

HIGH_BAND = (0.7, 0.9)
NATIVE_BAND = (0.3, 0.6)
LOW_BAND = (0.1, 0.5)

# Categories whose members move together
CORRELATED_FAMILIES = ("USD", "BTC", "ETH")


class CorrelationStrategy(ABC):
    @abstractmethod
    def estimate(self, assets: List[str], network: str) -> List[AssetCorrelation]:
        """One entry per unordered pair of distinct assets."""
        pass


class HeuristicCorrelationStrategy(CorrelationStrategy):
    """
    Same family (stablecoins, BTC-, ETH-wrapped) -> high band.
    Pair containing the network's native asset -> mid band.
    Anything else -> low band.
    The value is jittered uniformly inside the band and rounded to 2 decimals.
    """

    def __init__(self, native_assets: Optional[Dict[str, str]] = None, rng: Optional[random.Random] = None):
        self.native_assets = native_assets or {}
        self.rng = rng if rng is not None else random.Random()

    def band(self, asset1: str, asset2: str, network: str = "testnet") -> Tuple[float, float]:
        native = self.native_assets.get(network.lower(), "XLM")
        if any(family in asset1 and family in asset2 for family in CORRELATED_FAMILIES):
            return HIGH_BAND
        if native in asset1 or native in asset2:
            return NATIVE_BAND
        return LOW_BAND

    def estimate(self, assets: List[str], network: str) -> List[AssetCorrelation]:
        distinct = list(dict.fromkeys(assets))
        if len(distinct) < 2:
            return []

        correlations = []
        for i in range(len(distinct)):
            for j in range(i + 1, len(distinct)):
                low, high = self.band(distinct[i], distinct[j], network)
                value = round(low + self.rng.random() * (high - low), 2)
                correlations.append(AssetCorrelation(distinct[i], distinct[j], value))

        return correlations
