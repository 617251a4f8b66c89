"""
py_vault_data/interface.py
Abstract Contracts for everything the analytics engine reads from.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List

from .models import VaultRecord, VaultTransaction, ValueSnapshot, VaultState


class IVaultDataAccessor(ABC):
    """Read-only access to the vault tables. All lists are ordered by time, ascending."""

    @abstractmethod
    async def get_vault(self, vault_id: str) -> Optional[VaultRecord]:
        pass

    @abstractmethod
    async def list_vaults(self, owner: str, network: str) -> List[VaultRecord]:
        pass

    @abstractmethod
    async def get_transactions(self, vault_id: str) -> List[VaultTransaction]:
        pass

    @abstractmethod
    async def get_snapshots(self, vault_ids: List[str],
                            since: Optional[datetime] = None,
                            until: Optional[datetime] = None) -> List[ValueSnapshot]:
        """
        Snapshots of all given vaults with since <= timestamp <= until.
        Either bound may be None (open).
        """
        pass


class IUnitConverter(ABC):
    """Converts a native smallest-unit amount into fiat."""

    @abstractmethod
    async def to_fiat(self, amount: float) -> float:
        """May raise ExternalServiceError when no price is available."""
        pass


class IVaultStateReader(ABC):
    """Reads the live (on-chain) state of a vault."""

    @abstractmethod
    async def read_state(self, vault: VaultRecord) -> Optional[VaultState]:
        pass


class IAssetLookup(ABC):
    """External asset-id -> symbol lookup (blocking, typically HTTP)."""

    @abstractmethod
    def lookup(self, asset_id: str, network: str) -> Optional[str]:
        """Returns the symbol or None when unknown. May raise ExternalServiceError."""
        pass
