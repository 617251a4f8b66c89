"""
py_analytics/engine.py
Single entry point wiring all analytics components to one set of collaborators.
"""
import random
from datetime import datetime
from typing import Callable, List, Optional

from py_vault_data.cache import TTLCache
from py_vault_data.interface import IVaultDataAccessor, IUnitConverter, IVaultStateReader, IAssetLookup
from py_vault_data.memory import StoredStateReader
from py_vault_data.models import VaultRecord, utc_now
from py_financial_math.models import RiskMetrics

from .allocation import AllocationBuilder
from .apy import APYCalculator
from .assets import AssetNameResolver, SoroswapTokenLookup
from .config import AnalyticsConfig
from .correlation import CorrelationStrategy, HeuristicCorrelationStrategy
from .history import PerformanceHistory
from .models import (
    AllocationSlice, AssetCorrelation, DetailedVaultAnalytics, PerformancePoint,
    PortfolioAnalytics, PortfolioPerformancePoint, VaultAnalytics, VaultBreakdownRow
)
from .portfolio import PortfolioAnalyzer
from .risk import PortfolioRiskEngine
from .totals import TransactionTotalsResolver
from .tvl import TVLChangeCalculator
from .vault import VaultAnalyzer


class VaultAnalyticsEngine:
    def __init__(self,
                 accessor: IVaultDataAccessor,
                 vault_analyzer: VaultAnalyzer,
                 portfolio: PortfolioAnalyzer,
                 risk_engine: PortfolioRiskEngine,
                 history: PerformanceHistory):
        self.accessor = accessor
        self.vault_analyzer = vault_analyzer
        self.portfolio = portfolio
        self.risk_engine = risk_engine
        self.history = history

    async def get_vault_analytics(self, vault_id: str) -> VaultAnalytics:
        return await self.vault_analyzer.get_vault_analytics(vault_id)

    async def get_detailed_vault_analytics(self, vault_id: str) -> DetailedVaultAnalytics:
        return await self.vault_analyzer.get_detailed_vault_analytics(vault_id)

    async def get_portfolio_analytics(self, owner: str, network: str = "testnet") -> PortfolioAnalytics:
        return await self.portfolio.get_portfolio_analytics(owner, network)

    async def get_portfolio_allocation(self, owner: str, network: str = "testnet") -> List[AllocationSlice]:
        return await self.portfolio.get_portfolio_allocation(owner, network)

    async def get_vault_breakdown(self, owner: str, network: str = "testnet") -> List[VaultBreakdownRow]:
        return await self.portfolio.get_vault_breakdown(owner, network)

    async def estimate_correlations(self, owner: str, network: str = "testnet") -> List[AssetCorrelation]:
        return await self.portfolio.estimate_correlations(owner, network)

    async def compute_risk_metrics(self, vaults: List[VaultRecord]) -> RiskMetrics:
        return await self.risk_engine.compute(vaults)

    async def get_historical_performance(self, vault_id: str, days: int = 30) -> List[PerformancePoint]:
        return await self.history.get_historical_performance(vault_id, days)

    async def get_portfolio_performance_history(self, owner: str, network: str = "testnet",
                                                days: int = 30) -> List[PortfolioPerformancePoint]:
        vaults = await self.accessor.list_vaults(owner, network)
        return await self.history.get_portfolio_performance_history(vaults, days)


def build_engine(accessor: IVaultDataAccessor,
                 converter: IUnitConverter,
                 state_reader: Optional[IVaultStateReader] = None,
                 asset_lookup: Optional[IAssetLookup] = None,
                 config: Optional[AnalyticsConfig] = None,
                 clock: Optional[Callable[[], datetime]] = None,
                 correlation: Optional[CorrelationStrategy] = None,
                 rng: Optional[random.Random] = None) -> VaultAnalyticsEngine:
    """
    Builds the engine with default adapters where none are given:
    the record's stored state and the Soroswap token list.
    """
    config = config or AnalyticsConfig()
    clock = clock or utc_now
    state_reader = state_reader or StoredStateReader()
    if asset_lookup is None:
        asset_lookup = SoroswapTokenLookup(config.token_list_url, config.request_timeout)

    totals = TransactionTotalsResolver(accessor, config)
    apy = APYCalculator(accessor, converter, state_reader, totals, config, clock=clock)
    tvl_change = TVLChangeCalculator(accessor, config, clock=clock)
    vault_analyzer = VaultAnalyzer(accessor, converter, state_reader, apy, totals, tvl_change, config, clock=clock)

    risk_engine = PortfolioRiskEngine(accessor, config, clock=clock)
    resolver = AssetNameResolver(config.known_tokens, asset_lookup, TTLCache(config.cache_ttl_seconds))
    allocation = AllocationBuilder(state_reader, converter, resolver, config)
    if correlation is None:
        correlation = HeuristicCorrelationStrategy(config.native_assets, rng=rng)

    portfolio = PortfolioAnalyzer(accessor, vault_analyzer, risk_engine, allocation, correlation, config, clock=clock)
    history = PerformanceHistory(accessor, risk_engine, config, clock=clock)

    return VaultAnalyticsEngine(accessor, vault_analyzer, portfolio, risk_engine, history)
