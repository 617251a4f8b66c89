from datetime import datetime, timedelta
from typing import Callable, List, Optional

from py_vault_data.errors import ExternalServiceError
from py_vault_data.interface import IVaultDataAccessor, IUnitConverter, IVaultStateReader
from py_vault_data.models import VaultRecord, ValueSnapshot, utc_now

from .config import AnalyticsConfig
from .logger import log_event
from .snapshots import valid_snapshots


async def live_tvl(vault: VaultRecord, state_reader: IVaultStateReader, converter: IUnitConverter) -> Optional[float]:
    """
    Fiat value of the vault's live balance, or None when there is no state,
    the state could not be read or the conversion failed.
    """
    try:
        state = await state_reader.read_state(vault)
        if state is None or not state.total_value:
            return None
        return await converter.to_fiat(state.total_value)
    except ExternalServiceError as e:
        log_event("TVL", f"{vault.vault_id} - Could not value live balance: {e}", "warning")
        return None


class TVLChangeCalculator:
    """ Percent change of the vault value over a lookback window. """

    def __init__(self, accessor: IVaultDataAccessor, config: AnalyticsConfig,
                 clock: Callable[[], datetime] = utc_now):
        self.accessor = accessor
        self.config = config
        self.clock = clock

    async def change(self, vault_id: str, hours: float,
                     snapshots: Optional[List[ValueSnapshot]] = None) -> float:
        """
        Latest valid snapshot vs. the nearest valid snapshot at or before now - hours.
        0.0 when either side is missing.
        """
        if snapshots is None:
            snapshots = await self.accessor.get_snapshots([vault_id])

        valid = sorted(valid_snapshots(snapshots, self.config.max_valid_value), key=lambda s: s.timestamp)
        if not valid:
            return 0.0

        current_value = valid[-1].total_value_fiat
        target_time = self.clock() - timedelta(hours=hours)

        historical = [s for s in valid if s.timestamp <= target_time]
        if not historical:
            return 0.0

        historical_value = historical[-1].total_value_fiat
        if historical_value <= 0:
            return 0.0

        return (current_value - historical_value) / historical_value * 100.0
