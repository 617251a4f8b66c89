from typing import Dict, List

from py_vault_data.interface import IUnitConverter, IVaultStateReader
from py_vault_data.models import VaultRecord

from .assets import AssetNameResolver, looks_like_contract_id
from .config import AnalyticsConfig
from .logger import log_event
from .models import AllocationSlice, VaultAnalytics


class AllocationBuilder:
    """
    Portfolio allocation by asset.
    Live on-chain balances win. Without them a vault's TVL is split along its
    configured target allocations (equal split when none are given).
    """

    def __init__(self,
                 state_reader: IVaultStateReader,
                 converter: IUnitConverter,
                 resolver: AssetNameResolver,
                 config: AnalyticsConfig):
        self.state_reader = state_reader
        self.converter = converter
        self.resolver = resolver
        self.config = config

    async def _add_live_balances(self, vault: VaultRecord, asset_map: Dict[str, float]) -> bool:
        """ Returns False when the vault has no live balances to use. """
        state = await self.state_reader.read_state(vault)
        if state is None or not state.asset_balances:
            return False

        for balance in state.asset_balances:
            if balance.balance == 0:
                continue
            value = await self.converter.to_fiat(balance.balance)
            name = await self.resolver.resolve(balance.asset, vault.network)
            asset_map[name] = asset_map.get(name, 0.0) + value
        return True

    async def _add_configured(self, vault: VaultRecord, vault_tvl: float, asset_map: Dict[str, float]):
        assets = vault.assets
        for asset in assets:
            code = asset.code
            if looks_like_contract_id(code):
                code = await self.resolver.resolve(code, vault.network)

            allocation = asset.allocation if asset.allocation else 100.0 / len(assets)
            asset_map[code] = asset_map.get(code, 0.0) + vault_tvl * allocation / 100.0

    async def build(self, vaults: List[VaultRecord], analytics: List[VaultAnalytics]) -> List[AllocationSlice]:
        tvl_by_vault = {a.vault_id: a.tvl for a in analytics}
        if sum(tvl_by_vault.values()) == 0:
            return []

        asset_map: Dict[str, float] = {}
        for vault in vaults:
            # A vault counts all-or-nothing
            vault_assets: Dict[str, float] = {}
            try:
                if not await self._add_live_balances(vault, vault_assets):
                    log_event("Allocation", f"{vault.vault_id} - No live asset balances, using configured allocations", "warning")
                    await self._add_configured(vault, tvl_by_vault.get(vault.vault_id, 0.0), vault_assets)
            except Exception as e:
                log_event("Allocation", f"{vault.vault_id} - Skipping vault: {e}", "error")
                continue

            for name, value in vault_assets.items():
                asset_map[name] = asset_map.get(name, 0.0) + value

        total_value = sum(asset_map.values())
        palette = self.config.palette

        slices = [
            AllocationSlice(
                asset=asset,
                value=value,
                percentage=(value / total_value) * 100.0 if total_value > 0 else 0.0,
                color=palette[i % len(palette)]
            )
            for i, (asset, value) in enumerate(asset_map.items())
        ]
        return sorted(slices, key=lambda s: s.value, reverse=True)
