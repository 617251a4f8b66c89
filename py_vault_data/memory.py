"""
py_vault_data/memory.py
In-process vault store. Backs the CLI (loaded from a JSON export) and the tests.
"""
import json
import logging
import os
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Any

from .errors import DataValidationError
from .interface import IVaultDataAccessor, IVaultStateReader
from .models import VaultRecord, VaultTransaction, ValueSnapshot, VaultState, to_utc

# Child of the analytics logger; handlers live on the parent.
logger = logging.getLogger("vault_analytics.store")


class InMemoryVaultStore(IVaultDataAccessor):
    def __init__(self):
        self._vaults: Dict[str, VaultRecord] = {}
        self._transactions: Dict[str, List[VaultTransaction]] = defaultdict(list)
        self._snapshots: Dict[str, List[ValueSnapshot]] = defaultdict(list)

    # --- Writers (used by loaders and tests only) ---

    def add_vault(self, vault: VaultRecord):
        self._vaults[vault.vault_id] = vault

    def add_transaction(self, vault_id: str, tx: VaultTransaction):
        self._transactions[vault_id].append(tx)
        self._transactions[vault_id].sort(key=lambda t: t.timestamp)

    def add_snapshot(self, snapshot: ValueSnapshot):
        self._snapshots[snapshot.vault_id].append(snapshot)
        self._snapshots[snapshot.vault_id].sort(key=lambda s: s.timestamp)

    # --- IVaultDataAccessor ---

    async def get_vault(self, vault_id: str) -> Optional[VaultRecord]:
        return self._vaults.get(vault_id)

    async def list_vaults(self, owner: str, network: str) -> List[VaultRecord]:
        network = network.lower()
        return [v for v in self._vaults.values() if v.owner == owner and v.network == network]

    async def get_transactions(self, vault_id: str) -> List[VaultTransaction]:
        return list(self._transactions.get(vault_id, []))

    async def get_snapshots(self, vault_ids: List[str],
                            since: Optional[datetime] = None,
                            until: Optional[datetime] = None) -> List[ValueSnapshot]:
        since_utc = to_utc(since) if since is not None else None
        until_utc = to_utc(until) if until is not None else None

        results = []
        for vault_id in vault_ids:
            for snap in self._snapshots.get(vault_id, []):
                if since_utc is not None and snap.timestamp < since_utc:
                    continue
                if until_utc is not None and snap.timestamp > until_utc:
                    continue
                results.append(snap)

        return sorted(results, key=lambda s: s.timestamp)


class StoredStateReader(IVaultStateReader):
    """ Returns the state last written to the vault record by the monitor. """

    async def read_state(self, vault: VaultRecord) -> Optional[VaultState]:
        return vault.current_state


def _load_rows(rows: List[Any], parse, label: str) -> List[Any]:
    parsed = []
    for i, row in enumerate(rows):
        try:
            parsed.append(parse(row))
        except DataValidationError as e:
            logger.warning(f"[load_store] Skipping {label} #{i}: {e}")
    return parsed


def load_store(path: str) -> InMemoryVaultStore:
    """
    Builds a store from a JSON export:
    {"vaults": [...], "transactions": [{"vault_id": ..., ...}], "snapshots": [...]}
    Malformed records are skipped with a warning.
    """
    store = InMemoryVaultStore()
    if not os.path.exists(path):
        raise FileNotFoundError(f"Vault data file not found: {path}")

    with open(path, "r") as f:
        data = json.load(f)

    for vault in _load_rows(data.get("vaults", []), VaultRecord.from_dict, "vault"):
        store.add_vault(vault)

    for row in data.get("transactions", []):
        vault_id = row.get("vault_id") if isinstance(row, dict) else None
        if not vault_id:
            logger.warning(f"[load_store] Skipping transaction without vault_id: {row!r}")
            continue
        for tx in _load_rows([row], VaultTransaction.from_dict, "transaction"):
            store.add_transaction(str(vault_id), tx)

    for snap in _load_rows(data.get("snapshots", []), ValueSnapshot.from_dict, "snapshot"):
        store.add_snapshot(snap)

    return store
