from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import List, Optional, Dict, Any

from py_financial_math.models import RiskMetrics
from py_vault_data.models import VaultTransaction, ValueSnapshot, AssetConfig


@dataclass
class TransactionTotals:
    total_deposits: float
    total_withdrawals: float
    source: str # "ledger" | "snapshots" | "baseline"

    @property
    def net_deposits(self) -> float:
        return self.total_deposits - self.total_withdrawals


@dataclass
class VaultAnalytics:
    """ Per-vault report. Recomputed on every request, never stored. """
    vault_id: str
    tvl: float
    tvl_change_24h: float # %
    tvl_change_7d: float # %
    apy: float # %
    total_deposits: float
    total_withdrawals: float
    net_deposits: float
    total_earnings: float
    earnings_percentage: float # % of net deposits
    share_price: float
    total_shares: float
    last_updated: datetime

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["last_updated"] = self.last_updated.isoformat()
        return d


@dataclass
class VaultRiskSummary:
    """ Vault-scope risk figures shown next to a single vault. """
    sharpe_ratio: float
    max_drawdown: float
    volatility: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DetailedVaultAnalytics:
    analytics: VaultAnalytics
    risk: VaultRiskSummary
    transactions: List[VaultTransaction] = field(default_factory=list) # newest first
    recent_snapshots: List[ValueSnapshot] = field(default_factory=list) # newest first
    assets: List[AssetConfig] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        d = self.analytics.to_dict()
        d.update({
            "risk_metrics": self.risk.to_dict(),
            "transactions": [t.to_dict() for t in self.transactions],
            "recent_snapshots": [s.to_dict() for s in self.recent_snapshots],
            "assets": [a.to_dict() for a in self.assets]
        })
        return d


@dataclass
class VaultBreakdownRow:
    analytics: VaultAnalytics
    name: str
    status: str
    assets: List[AssetConfig]
    risk: VaultRiskSummary

    def to_dict(self) -> Dict[str, Any]:
        d = self.analytics.to_dict()
        d.update({
            "name": self.name,
            "status": self.status,
            "assets": [a.to_dict() for a in self.assets],
            "risk_metrics": self.risk.to_dict()
        })
        return d


@dataclass
class VaultPerformer:
    vault_id: str
    name: str
    apy: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AssetCorrelation:
    asset1: str
    asset2: str
    correlation: float # 0..1

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AllocationSlice:
    asset: str
    value: float
    percentage: float
    color: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PerformancePoint:
    date: str
    value: float
    apy: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PortfolioPerformancePoint:
    date: str
    value: float
    apy: float
    volatility: float # rolling, annualized %
    drawdown: float # % from running peak
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["timestamp"] = self.timestamp.isoformat()
        return d


@dataclass
class PortfolioAnalytics:
    """ Unified portfolio container. Risk metrics are flattened in to_dict(). """
    total_tvl: float
    total_earnings: float
    average_apy: float
    weighted_apy: float
    total_deposits: float
    total_withdrawals: float
    best_performing_vault: Optional[VaultPerformer]
    worst_performing_vault: Optional[VaultPerformer]
    risk: RiskMetrics
    asset_correlations: List[AssetCorrelation] = field(default_factory=list)
    vault_count: int = 0
    active_vault_count: int = 0

    @staticmethod
    def empty() -> 'PortfolioAnalytics':
        return PortfolioAnalytics(
            total_tvl=0.0,
            total_earnings=0.0,
            average_apy=0.0,
            weighted_apy=0.0,
            total_deposits=0.0,
            total_withdrawals=0.0,
            best_performing_vault=None,
            worst_performing_vault=None,
            risk=RiskMetrics.neutral()
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "total_tvl": self.total_tvl,
            "total_earnings": self.total_earnings,
            "average_apy": self.average_apy,
            "weighted_apy": self.weighted_apy,
            "total_deposits": self.total_deposits,
            "total_withdrawals": self.total_withdrawals,
            "best_performing_vault": self.best_performing_vault.to_dict() if self.best_performing_vault else None,
            "worst_performing_vault": self.worst_performing_vault.to_dict() if self.worst_performing_vault else None,
            "asset_correlations": [c.to_dict() for c in self.asset_correlations],
            "vault_count": self.vault_count,
            "active_vault_count": self.active_vault_count
        }
        d.update(self.risk.to_dict())
        return d
