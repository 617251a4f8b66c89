# Expose key functions for cleaner imports
from py_vault_data.cache import TTLCache
from .config import AnalyticsConfig, load_config
from .logger import get_analytics_logger, log_event
from .models import (TransactionTotals, VaultAnalytics, VaultRiskSummary, DetailedVaultAnalytics,
                     VaultBreakdownRow, VaultPerformer, AssetCorrelation, AllocationSlice,
                     PerformancePoint, PortfolioPerformancePoint, PortfolioAnalytics)
from .assets import AssetNameResolver, SoroswapTokenLookup
from .totals import TransactionTotalsResolver
from .apy import APYCalculator
from .tvl import TVLChangeCalculator
from .vault import VaultAnalyzer
from .risk import PortfolioRiskEngine
from .correlation import CorrelationStrategy, HeuristicCorrelationStrategy
from .allocation import AllocationBuilder
from .history import PerformanceHistory
from .portfolio import PortfolioAnalyzer
from .engine import VaultAnalyticsEngine, build_engine
