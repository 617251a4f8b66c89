from typing import List, Optional

from py_vault_data.interface import IVaultDataAccessor
from py_vault_data.models import TransactionType, VaultTransaction, ValueSnapshot

from .config import AnalyticsConfig
from .logger import log_event
from .models import TransactionTotals
from .snapshots import reject_outliers


def sum_ledger(transactions: List[VaultTransaction]) -> TransactionTotals:
    deposits = sum(t.amount_fiat for t in transactions if t.type == TransactionType.DEPOSIT)
    withdrawals = sum(t.amount_fiat for t in transactions if t.type == TransactionType.WITHDRAWAL)
    return TransactionTotals(deposits, withdrawals, "ledger")


class TransactionTotalsResolver:
    """
    Gross deposits/withdrawals of a vault.
    The ledger is authoritative. Without ledger entries the totals are estimated
    from clean snapshots (bounds and median outliers removed): the lowest value is
    the deposit baseline and every drop of more than 30% between consecutive
    snapshots counts as a withdrawal.
    Both rules are approximations; a complete ledger upstream is the real fix.
    """

    def __init__(self, accessor: IVaultDataAccessor, config: AnalyticsConfig):
        self.accessor = accessor
        self.config = config

    async def resolve(self, vault_id: str, current_tvl: float,
                      transactions: Optional[List[VaultTransaction]] = None,
                      snapshots: Optional[List[ValueSnapshot]] = None) -> TransactionTotals:
        if transactions is None:
            transactions = await self.accessor.get_transactions(vault_id)

        if transactions:
            totals = sum_ledger(transactions)
            log_event("Totals", f"{vault_id} - Using transaction ledger: Deposits=${totals.total_deposits:.2f}, "
                                f"Withdrawals=${totals.total_withdrawals:.2f}")
            return totals

        log_event("Totals", f"{vault_id} - No transaction data, estimating from snapshots. "
                            f"Earnings will be approximate.", "warning")

        if snapshots is None:
            snapshots = await self.accessor.get_snapshots([vault_id])

        return self.estimate_from_snapshots(vault_id, current_tvl, snapshots)

    def estimate_from_snapshots(self, vault_id: str, current_tvl: float,
                                snapshots: List[ValueSnapshot]) -> TransactionTotals:
        valid = sorted(reject_outliers(snapshots, self.config.max_valid_value, self.config.outlier_ratio),
                       key=lambda s: s.timestamp)
        if not valid:
            log_event("Totals", f"{vault_id} - No valid snapshots. Using current TVL as deposit baseline.", "warning")
            return TransactionTotals(current_tvl, 0.0, "baseline")

        min_value = min(s.total_value_fiat for s in valid)

        # A baseline far above the current value means the history itself is broken
        if min_value > current_tvl * self.config.corrupted_baseline_factor:
            log_event("Totals", f"{vault_id} - Min value ({min_value:.2f}) much higher than current TVL "
                                f"({current_tvl:.2f}). Using current TVL as deposit baseline.", "warning")
            return TransactionTotals(current_tvl, 0.0, "baseline")

        total_withdrawals = 0.0
        for i in range(1, len(valid)):
            prev_value = valid[i-1].total_value_fiat
            drop = prev_value - valid[i].total_value_fiat
            if drop > 0 and drop > prev_value * self.config.withdrawal_drop_ratio:
                total_withdrawals += drop

        log_event("Totals", f"{vault_id} - Min: ${min_value:.2f}, Current: ${current_tvl:.2f}, "
                            f"Withdrawals: ${total_withdrawals:.2f}")
        return TransactionTotals(min_value, total_withdrawals, "snapshots")
