import asyncio
from datetime import datetime
from typing import Callable, List, Tuple

from py_vault_data.interface import IVaultDataAccessor
from py_vault_data.models import VaultRecord, utc_now

from .allocation import AllocationBuilder
from .config import AnalyticsConfig
from .correlation import CorrelationStrategy
from .logger import log_event
from .models import (
    AllocationSlice, AssetCorrelation, PortfolioAnalytics,
    VaultAnalytics, VaultBreakdownRow, VaultPerformer
)
from .risk import PortfolioRiskEngine
from .vault import VaultAnalyzer


class PortfolioAnalyzer:
    """
    Portfolio-level views over all vaults an owner has on one network.
    Per-vault work runs concurrently; a vault that fails is logged and left out.
    """

    def __init__(self,
                 accessor: IVaultDataAccessor,
                 vault_analyzer: VaultAnalyzer,
                 risk_engine: PortfolioRiskEngine,
                 allocation: AllocationBuilder,
                 correlation: CorrelationStrategy,
                 config: AnalyticsConfig,
                 clock: Callable[[], datetime] = utc_now):
        self.accessor = accessor
        self.vault_analyzer = vault_analyzer
        self.risk_engine = risk_engine
        self.allocation = allocation
        self.correlation = correlation
        self.config = config
        self.clock = clock

    async def _analyze_all(self, vaults: List[VaultRecord]) -> List[Tuple[VaultRecord, VaultAnalytics]]:
        results = await asyncio.gather(
            *(self.vault_analyzer.get_vault_analytics(v.vault_id) for v in vaults),
            return_exceptions=True
        )

        analyzed = []
        for vault, result in zip(vaults, results):
            if isinstance(result, Exception):
                log_event("Portfolio", f"{vault.vault_id} - Analytics failed, excluding vault: {result}", "error")
                continue
            analyzed.append((vault, result))
        return analyzed

    async def get_portfolio_analytics(self, owner: str, network: str = "testnet") -> PortfolioAnalytics:
        vaults = await self.accessor.list_vaults(owner, network)
        if not vaults:
            return PortfolioAnalytics.empty()

        analyzed = await self._analyze_all(vaults)
        if not analyzed:
            return PortfolioAnalytics.empty()

        analytics = [a for _, a in analyzed]
        total_tvl = sum(a.tvl for a in analytics)
        total_earnings = sum(a.total_earnings for a in analytics)
        total_deposits = sum(a.total_deposits for a in analytics)
        total_withdrawals = sum(a.total_withdrawals for a in analytics)

        earning = [a.apy for a in analytics if a.apy != 0]
        average_apy = sum(earning) / len(earning) if earning else 0.0
        weighted_apy = sum(a.apy * a.tvl for a in analytics) / total_tvl if total_tvl > 0 else 0.0

        # sorted() is stable: ties keep vault order
        ranked = sorted(analyzed, key=lambda pair: pair[1].apy, reverse=True)
        best_vault, best = ranked[0]
        worst_vault, worst = ranked[-1]

        risk = await self.risk_engine.compute([v for v, _ in analyzed])
        correlations = await self._correlations_for([v for v, _ in analyzed], analytics, network)

        log_event("Portfolio", f"{owner} ({network}) - {len(analytics)} vaults, tvl=${total_tvl:.2f}, "
                               f"avgAPY={average_apy:.2f}%, weightedAPY={weighted_apy:.2f}%")

        return PortfolioAnalytics(
            total_tvl=total_tvl,
            total_earnings=total_earnings,
            average_apy=average_apy,
            weighted_apy=weighted_apy,
            total_deposits=total_deposits,
            total_withdrawals=total_withdrawals,
            best_performing_vault=VaultPerformer(best.vault_id, best_vault.display_name, best.apy),
            worst_performing_vault=VaultPerformer(worst.vault_id, worst_vault.display_name, worst.apy),
            risk=risk,
            asset_correlations=correlations,
            vault_count=len(analytics),
            active_vault_count=sum(1 for v, _ in analyzed if v.status == "active")
        )

    async def _correlations_for(self, vaults: List[VaultRecord], analytics: List[VaultAnalytics],
                                network: str) -> List[AssetCorrelation]:
        slices = await self.allocation.build(vaults, analytics)
        return self.correlation.estimate([s.asset for s in slices], network)

    async def estimate_correlations(self, owner: str, network: str = "testnet") -> List[AssetCorrelation]:
        vaults = await self.accessor.list_vaults(owner, network)
        if not vaults:
            return []
        analyzed = await self._analyze_all(vaults)
        return await self._correlations_for([v for v, _ in analyzed], [a for _, a in analyzed], network)

    async def get_portfolio_allocation(self, owner: str, network: str = "testnet") -> List[AllocationSlice]:
        vaults = await self.accessor.list_vaults(owner, network)
        if not vaults:
            return []
        analyzed = await self._analyze_all(vaults)
        return await self.allocation.build([v for v, _ in analyzed], [a for _, a in analyzed])

    async def get_vault_breakdown(self, owner: str, network: str = "testnet") -> List[VaultBreakdownRow]:
        vaults = await self.accessor.list_vaults(owner, network)
        if not vaults:
            return []

        analyzed = await self._analyze_all(vaults)
        risks = await asyncio.gather(
            *(self.vault_analyzer.get_risk_summary(v.vault_id) for v, _ in analyzed)
        )

        rows = [
            VaultBreakdownRow(
                analytics=analytics,
                name=vault.display_name,
                status=vault.status,
                assets=list(vault.assets),
                risk=risk
            )
            for (vault, analytics), risk in zip(analyzed, risks)
        ]
        return sorted(rows, key=lambda r: r.analytics.tvl, reverse=True)
