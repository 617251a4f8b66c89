from datetime import datetime, timedelta
from typing import Callable, List, Tuple

from py_vault_data.interface import IVaultDataAccessor
from py_vault_data.models import VaultRecord, utc_now
from py_financial_math.models import RiskMetrics
from py_financial_math.risk import compute_risk_metrics

from .config import AnalyticsConfig
from .logger import log_event
from .snapshots import clean_per_vault, hourly_portfolio_series


class PortfolioRiskEngine:
    """ Risk profile of the summed value of a set of vaults over the lookback window. """

    def __init__(self, accessor: IVaultDataAccessor, config: AnalyticsConfig,
                 clock: Callable[[], datetime] = utc_now):
        self.accessor = accessor
        self.config = config
        self.clock = clock

    async def portfolio_series(self, vaults: List[VaultRecord], days: int) -> List[Tuple[datetime, float]]:
        """ Hourly, per-vault-deduplicated portfolio value series over the last `days`. """
        if not vaults:
            return []

        since = self.clock() - timedelta(days=days)
        snapshots = await self.accessor.get_snapshots([v.vault_id for v in vaults], since=since)
        cleaned = clean_per_vault(snapshots, self.config.max_valid_value, self.config.outlier_ratio)

        dropped = len(snapshots) - len(cleaned)
        if dropped:
            log_event("RiskMetrics", f"Dropped {dropped} corrupted/outlier snapshots", "warning")

        return hourly_portfolio_series(cleaned)

    async def compute(self, vaults: List[VaultRecord]) -> RiskMetrics:
        """ Neutral metrics (beta 1, rest 0) when there are fewer than 2 usable points. """
        if not vaults:
            return RiskMetrics.neutral()

        series = await self.portfolio_series(vaults, self.config.risk_lookback_days)
        if len(series) < 2:
            log_event("RiskMetrics", f"Not enough portfolio history ({len(series)} points) - returning neutral metrics", "warning")
            return RiskMetrics.neutral()

        metrics = compute_risk_metrics(
            [value for _, value in series],
            risk_free_rate=self.config.risk_free_rate,
            market_return=self.config.market_return,
            periods_per_year=self.config.periods_per_year
        )

        log_event("RiskMetrics", f"sharpe={metrics.sharpe_ratio:.2f}, sortino={metrics.sortino_ratio:.2f}, "
                                 f"maxDD={metrics.max_drawdown:.1f}%, vol={metrics.volatility:.1f}%, "
                                 f"VaR={metrics.value_at_risk:.1f}%, points={len(series)}")
        return metrics
