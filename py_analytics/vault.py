from datetime import datetime, timedelta
from typing import Callable, List

from py_vault_data.errors import ExternalServiceError, VaultNotFoundError
from py_vault_data.interface import IVaultDataAccessor, IUnitConverter, IVaultStateReader
from py_vault_data.models import VaultRecord, ValueSnapshot, utc_now
from py_financial_math.risk import sharpe_ratio
from py_financial_math.series import simple_returns, annualized_volatility, max_drawdown

from .apy import APYCalculator
from .config import AnalyticsConfig
from .logger import log_event
from .models import VaultAnalytics, VaultRiskSummary, DetailedVaultAnalytics
from .snapshots import latest_valid, reject_outliers, valid_snapshots
from .totals import TransactionTotalsResolver
from .tvl import TVLChangeCalculator, live_tvl


class VaultAnalyzer:
    """ Combines TVL, APY, totals and TVL change into one consistent per-vault report. """

    def __init__(self,
                 accessor: IVaultDataAccessor,
                 converter: IUnitConverter,
                 state_reader: IVaultStateReader,
                 apy: APYCalculator,
                 totals: TransactionTotalsResolver,
                 tvl_change: TVLChangeCalculator,
                 config: AnalyticsConfig,
                 clock: Callable[[], datetime] = utc_now):
        self.accessor = accessor
        self.converter = converter
        self.state_reader = state_reader
        self.apy = apy
        self.totals = totals
        self.tvl_change = tvl_change
        self.config = config
        self.clock = clock

    async def _require_vault(self, vault_id: str) -> VaultRecord:
        vault = await self.accessor.get_vault(vault_id)
        if vault is None:
            raise VaultNotFoundError(vault_id)
        return vault

    async def get_vault_analytics(self, vault_id: str) -> VaultAnalytics:
        vault = await self._require_vault(vault_id)
        snapshots = await self.accessor.get_snapshots([vault_id])
        transactions = await self.accessor.get_transactions(vault_id)

        # 1. TVL: latest clean snapshot -> live balance -> 0
        latest = latest_valid(snapshots, self.config.max_valid_value)
        if latest is not None:
            tvl = latest.total_value_fiat
        else:
            log_event("VaultAnalytics", f"{vault_id} - No performance snapshot, using live vault state")
            live_value = await live_tvl(vault, self.state_reader, self.converter)
            if live_value is None:
                log_event("VaultAnalytics", f"{vault_id} - No TVL data available (no snapshot and no live state)", "warning")
                tvl = 0.0
            else:
                tvl = live_value

        # 2. Always recompute APY so it matches the earnings below
        apy = await self.apy.compute(vault_id)

        # 3. Totals and earnings
        totals = await self.totals.resolve(vault_id, tvl, transactions=transactions, snapshots=snapshots)
        total_deposits = totals.total_deposits
        total_withdrawals = totals.total_withdrawals
        net_deposits = total_deposits - total_withdrawals

        total_earnings = tvl - net_deposits
        if total_earnings < -tvl:
            log_event("VaultAnalytics", f"{vault_id} - Unrealistic earnings ({total_earnings:.2f}). Resetting to 0.", "warning")
            total_earnings = 0.0

        # Small loss with no recorded flows is price noise
        if (total_earnings < 0 and abs(total_earnings) < tvl * self.config.noise_tolerance
                and total_deposits == total_withdrawals):
            log_event("VaultAnalytics", f"{vault_id} - Small negative earnings without flows. Treating as break-even.")
            total_earnings = 0.0

        earnings_percentage = (total_earnings / net_deposits) * 100.0 if net_deposits > 0 else 0.0

        # 4. Shares
        try:
            state = await self.state_reader.read_state(vault)
        except ExternalServiceError as e:
            log_event("VaultAnalytics", f"{vault_id} - Could not read vault state, no share data: {e}", "warning")
            state = None
        total_shares = state.total_shares if state is not None else 0.0
        share_price = tvl / total_shares if total_shares > 0 else 1.0

        # 5. TVL change: prefer the monitor's pre-computed figures
        newest = max(snapshots, key=lambda s: s.timestamp) if snapshots else None
        if newest is not None and newest.returns_24h is not None:
            tvl_change_24h = newest.returns_24h
        else:
            tvl_change_24h = await self.tvl_change.change(vault_id, 24, snapshots=snapshots)

        if newest is not None and newest.returns_7d is not None:
            tvl_change_7d = newest.returns_7d
        else:
            tvl_change_7d = await self.tvl_change.change(vault_id, 24 * 7, snapshots=snapshots)

        log_event("VaultAnalytics", f"{vault_id} - tvl=${tvl:.2f}, deposits=${total_deposits:.2f}, "
                                    f"withdrawals=${total_withdrawals:.2f}, earnings=${total_earnings:.2f} "
                                    f"({earnings_percentage:.2f}%), apy={apy:.2f}% [{totals.source}]")

        return VaultAnalytics(
            vault_id=vault_id,
            tvl=tvl,
            tvl_change_24h=tvl_change_24h,
            tvl_change_7d=tvl_change_7d,
            apy=apy,
            total_deposits=total_deposits,
            total_withdrawals=total_withdrawals,
            net_deposits=net_deposits,
            total_earnings=total_earnings,
            earnings_percentage=earnings_percentage,
            share_price=share_price,
            total_shares=total_shares,
            last_updated=self.clock()
        )

    async def get_risk_summary(self, vault_id: str) -> VaultRiskSummary:
        """
        Vault-scope Sharpe and volatility over the risk lookback,
        max drawdown over the whole clean history.
        """
        since = self.clock() - timedelta(days=self.config.risk_lookback_days)
        all_snapshots = await self.accessor.get_snapshots([vault_id])

        recent = [s for s in valid_snapshots(all_snapshots, self.config.max_valid_value) if s.timestamp >= since]
        recent_values = [s.total_value_fiat for s in sorted(recent, key=lambda s: s.timestamp)]
        returns = simple_returns(recent_values)

        clean = sorted(reject_outliers(all_snapshots, self.config.max_valid_value, self.config.outlier_ratio),
                       key=lambda s: s.timestamp)

        return VaultRiskSummary(
            sharpe_ratio=sharpe_ratio(returns, self.config.risk_free_rate, self.config.periods_per_year),
            max_drawdown=max_drawdown([s.total_value_fiat for s in clean]) if len(clean) >= 2 else 0.0,
            volatility=annualized_volatility(returns, self.config.periods_per_year) if returns else 0.0
        )

    async def get_detailed_vault_analytics(self, vault_id: str) -> DetailedVaultAnalytics:
        analytics = await self.get_vault_analytics(vault_id)
        vault = await self._require_vault(vault_id)
        risk = await self.get_risk_summary(vault_id)

        transactions = await self.accessor.get_transactions(vault_id)
        snapshots: List[ValueSnapshot] = await self.accessor.get_snapshots([vault_id])

        recent_transactions = sorted(transactions, key=lambda t: t.timestamp, reverse=True)
        recent_snapshots = sorted(snapshots, key=lambda s: s.timestamp, reverse=True)

        return DetailedVaultAnalytics(
            analytics=analytics,
            risk=risk,
            transactions=recent_transactions[:self.config.recent_transactions_limit],
            recent_snapshots=recent_snapshots[:self.config.recent_snapshots_limit],
            assets=list(vault.assets)
        )
