"""
py_analytics/apy.py
Annualized yield of a single vault.

Two strategies, picked by data availability:
 - Cost basis: the ledger has deposits. Return on net invested capital since the first deposit.
 - Snapshot fallback: no ledger at all. Return of the latest clean snapshot over the
   same deposit baseline the earnings figure uses, so APY and earnings agree.
"""
from datetime import datetime
from typing import Callable, List

from py_vault_data.interface import IVaultDataAccessor, IUnitConverter, IVaultStateReader
from py_vault_data.models import VaultRecord, VaultTransaction, ValueSnapshot, TransactionType, utc_now
from py_financial_math.core import period_yield

from .config import AnalyticsConfig
from .logger import log_event
from .snapshots import latest_valid, reject_outliers
from .totals import TransactionTotalsResolver, sum_ledger
from .tvl import live_tvl

SECONDS_PER_DAY = 24 * 60 * 60


class APYCalculator:
    def __init__(self,
                 accessor: IVaultDataAccessor,
                 converter: IUnitConverter,
                 state_reader: IVaultStateReader,
                 totals: TransactionTotalsResolver,
                 config: AnalyticsConfig,
                 clock: Callable[[], datetime] = utc_now):
        self.accessor = accessor
        self.converter = converter
        self.state_reader = state_reader
        self.totals = totals
        self.config = config
        self.clock = clock

    async def compute(self, vault_id: str) -> float:
        """ APY in %. Never raises; 0.0 whenever the data cannot support a figure. """
        try:
            vault = await self.accessor.get_vault(vault_id)
            if vault is None:
                return 0.0

            transactions = await self.accessor.get_transactions(vault_id)
            snapshots = await self.accessor.get_snapshots([vault_id])

            if transactions:
                return await self._cost_basis(vault, transactions, snapshots)
            return await self._from_snapshots(vault_id, snapshots)
        except Exception as e:
            log_event("APY", f"{vault_id} - Error: {e}", "error")
            return 0.0

    async def _cost_basis(self, vault: VaultRecord,
                          transactions: List[VaultTransaction],
                          snapshots: List[ValueSnapshot]) -> float:
        vault_id = vault.vault_id
        deposits = sorted((t for t in transactions if t.type == TransactionType.DEPOSIT), key=lambda t: t.timestamp)
        if not deposits:
            log_event("APY", f"{vault_id} - Ledger has no deposits", "warning")
            return 0.0

        net_invested = sum_ledger(transactions).net_deposits
        if net_invested <= 0:
            return 0.0

        # Current value: latest clean snapshot, else the live balance
        latest = latest_valid(snapshots, self.config.max_valid_value)
        if latest is not None:
            current_value = latest.total_value_fiat
            reference_time = latest.timestamp
        else:
            log_event("APY", f"{vault_id} - No performance snapshot found, using live vault state")
            current_value = await live_tvl(vault, self.state_reader, self.converter)
            if current_value is None:
                log_event("APY", f"{vault_id} - No TVL data available (no snapshot and no live state)", "warning")
                return 0.0
            reference_time = self.clock()

        days_invested = (reference_time - deposits[0].timestamp).total_seconds() / SECONDS_PER_DAY
        if days_invested < self.config.min_days_invested:
            return 0.0

        total_return = (current_value - net_invested) / net_invested
        if days_invested < 1:
            log_event("APY", f"{vault_id} - Vault is very new ({days_invested * 24:.1f} hours), "
                             f"showing actual return (not annualized)", "warning")

        apy = period_yield(total_return, days_invested, self.config.cost_basis_apy_cap)
        log_event("APY", f"{vault_id} - COST-BASIS METHOD: netInvested=${net_invested:.2f}, "
                         f"currentValue=${current_value:.2f}, return={total_return * 100:.2f}%, "
                         f"days={days_invested:.2f}, apy={apy:.2f}%")
        return apy

    async def _from_snapshots(self, vault_id: str, snapshots: List[ValueSnapshot]) -> float:
        log_event("APY", f"{vault_id} - Using snapshot-based method (no transaction data)")

        clean = sorted(reject_outliers(snapshots, self.config.max_valid_value, self.config.outlier_ratio),
                       key=lambda s: s.timestamp)
        if len(clean) < 2:
            log_event("APY", f"{vault_id} - Not enough valid snapshots", "warning")
            return 0.0

        first, last = clean[0], clean[-1]
        current_value = last.total_value_fiat

        totals = await self.totals.resolve(vault_id, current_value, transactions=[], snapshots=snapshots)
        net_deposits = totals.net_deposits
        if net_deposits <= 0:
            log_event("APY", f"{vault_id} - Net deposits <= 0, cannot calculate APY", "warning")
            return 0.0

        days = (last.timestamp - first.timestamp).total_seconds() / SECONDS_PER_DAY
        if days <= 0:
            log_event("APY", f"{vault_id} - Invalid time period", "warning")
            return 0.0

        simple_return = (current_value - net_deposits) / net_deposits
        apy = period_yield(simple_return, days, self.config.snapshot_apy_cap)
        log_event("APY", f"{vault_id} - SNAPSHOT METHOD: netDeposits=${net_deposits:.2f}, "
                         f"currentValue=${current_value:.2f}, return={simple_return * 100:.2f}%, "
                         f"days={days:.2f}, apy={apy:.2f}%")
        return apy
