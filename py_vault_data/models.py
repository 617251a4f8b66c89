from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Dict, Any

import pandas as pd
import pytz

from .errors import DataValidationError

# Snapshot values outside (0, MAX_PLAUSIBLE_VALUE) are corrupted readings
# (usually raw smallest-unit balances written into the fiat column).
MAX_PLAUSIBLE_VALUE = 1_000_000_000.0


def to_utc(value: Any) -> datetime:
    """
    Normalizes a stored timestamp to an aware UTC datetime.
    Accepts datetimes (naive = UTC), ISO strings (incl. trailing 'Z') and Unix seconds.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        dt = datetime.fromtimestamp(value, tz=pytz.UTC)
    elif isinstance(value, str) and value:
        # Exports carry any number of fractional digits (e.g. '.12345+00:00')
        try:
            parsed = pd.to_datetime(value, utc=True, format="ISO8601")
        except (ValueError, TypeError, OverflowError) as e:
            raise DataValidationError(f"Invalid timestamp '{value}'") from e
        if pd.isna(parsed):
            raise DataValidationError(f"Invalid timestamp '{value}'")
        dt = parsed.to_pydatetime()
    else:
        raise DataValidationError(f"Invalid timestamp {value!r}")

    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def _require(data: Dict[str, Any], key: str, kind: str) -> Any:
    if not isinstance(data, dict):
        raise DataValidationError(f"{kind}: expected mapping, got {type(data).__name__}")
    if data.get(key) is None:
        raise DataValidationError(f"{kind}: missing required field '{key}'")
    return data[key]


def _as_float(value: Any, key: str, kind: str) -> float:
    if isinstance(value, bool):
        raise DataValidationError(f"{kind}: field '{key}' is not numeric")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise DataValidationError(f"{kind}: field '{key}' is not numeric ({value!r})") from e


def _optional_float(data: Dict[str, Any], key: str, kind: str) -> Optional[float]:
    value = data.get(key)
    if value is None:
        return None
    return _as_float(value, key, kind)


class TransactionType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


@dataclass(frozen=True)
class VaultTransaction:
    """ One ledger entry. Append-only, never mutated. """
    type: TransactionType
    amount_fiat: float
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "amount_fiat": self.amount_fiat,
            "timestamp": self.timestamp.isoformat()
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'VaultTransaction':
        kind = "VaultTransaction"
        raw_type = _require(data, "type", kind)
        try:
            tx_type = TransactionType(str(raw_type).lower())
        except ValueError as e:
            raise DataValidationError(f"{kind}: unknown type '{raw_type}'") from e

        # Stored rows use 'amount_usd'; accept both spellings.
        amount = data.get("amount_fiat", data.get("amount_usd"))
        if amount is None:
            raise DataValidationError(f"{kind}: missing required field 'amount_fiat'")

        return VaultTransaction(
            type=tx_type,
            amount_fiat=_as_float(amount, "amount_fiat", kind),
            timestamp=to_utc(_require(data, "timestamp", kind))
        )


@dataclass(frozen=True)
class ValueSnapshot:
    """ Periodic valuation written by the external monitor. """
    vault_id: str
    total_value_fiat: float
    timestamp: datetime
    returns_24h: Optional[float] = None
    returns_7d: Optional[float] = None

    @property
    def is_valid(self) -> bool:
        return 0 < self.total_value_fiat < MAX_PLAUSIBLE_VALUE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vault_id": self.vault_id,
            "total_value_fiat": self.total_value_fiat,
            "timestamp": self.timestamp.isoformat(),
            "returns_24h": self.returns_24h,
            "returns_7d": self.returns_7d
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'ValueSnapshot':
        kind = "ValueSnapshot"
        value = data.get("total_value_fiat", data.get("total_value")) if isinstance(data, dict) else None
        if value is None:
            raise DataValidationError(f"{kind}: missing required field 'total_value_fiat'")

        return ValueSnapshot(
            vault_id=str(_require(data, "vault_id", kind)),
            total_value_fiat=_as_float(value, "total_value_fiat", kind),
            timestamp=to_utc(_require(data, "timestamp", kind)),
            returns_24h=_optional_float(data, "returns_24h", kind),
            returns_7d=_optional_float(data, "returns_7d", kind)
        )


@dataclass(frozen=True)
class AssetBalance:
    asset: str # on-chain asset identifier
    balance: float # smallest units

    def to_dict(self) -> Dict[str, Any]:
        return {"asset": self.asset, "balance": self.balance}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'AssetBalance':
        kind = "AssetBalance"
        return AssetBalance(
            asset=str(_require(data, "asset", kind)),
            balance=_as_float(_require(data, "balance", kind), "balance", kind)
        )


@dataclass(frozen=True)
class AssetConfig:
    """ Configured target allocation entry. allocation is a percent of vault TVL. """
    code: str
    allocation: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "allocation": self.allocation}

    @staticmethod
    def from_dict(data: Any) -> 'AssetConfig':
        # Vault configs store either bare codes or {code, allocation} objects.
        if isinstance(data, str):
            return AssetConfig(code=data)
        kind = "AssetConfig"
        code = data.get("code") if isinstance(data, dict) else None
        return AssetConfig(
            code=str(code) if code else "UNKNOWN",
            allocation=_optional_float(data, "allocation", kind) if isinstance(data, dict) else None
        )


@dataclass
class VaultState:
    """ Last known on-chain state of a vault. """
    total_value: float # smallest units
    total_shares: float = 0.0 # dimensionless
    asset_balances: List[AssetBalance] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_value": self.total_value,
            "total_shares": self.total_shares,
            "asset_balances": [b.to_dict() for b in self.asset_balances]
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'VaultState':
        kind = "VaultState"
        if not isinstance(data, dict):
            raise DataValidationError(f"{kind}: expected mapping")
        return VaultState(
            total_value=_as_float(data.get("total_value", data.get("totalValue", 0)) or 0, "total_value", kind),
            total_shares=_as_float(data.get("total_shares", data.get("totalShares", 0)) or 0, "total_shares", kind),
            asset_balances=[AssetBalance.from_dict(b) for b in data.get("asset_balances", data.get("assetBalances", []))]
        )


@dataclass
class VaultRecord:
    vault_id: str
    owner: str
    network: str = "testnet"
    name: Optional[str] = None
    status: str = "active"
    contract_address: Optional[str] = None
    assets: List[AssetConfig] = field(default_factory=list)
    current_state: Optional[VaultState] = None

    @property
    def display_name(self) -> str:
        return self.name or "Unnamed Vault"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vault_id": self.vault_id,
            "owner": self.owner,
            "network": self.network,
            "name": self.name,
            "status": self.status,
            "contract_address": self.contract_address,
            "assets": [a.to_dict() for a in self.assets],
            "current_state": self.current_state.to_dict() if self.current_state else None
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'VaultRecord':
        kind = "VaultRecord"
        state = data.get("current_state") if isinstance(data, dict) else None
        return VaultRecord(
            vault_id=str(_require(data, "vault_id", kind)),
            owner=str(_require(data, "owner", kind)),
            network=str(data.get("network", "testnet")).lower(),
            name=data.get("name"),
            status=data.get("status", "active"),
            contract_address=data.get("contract_address"),
            assets=[AssetConfig.from_dict(a) for a in data.get("assets", [])],
            current_state=VaultState.from_dict(state) if state else None
        )


def utc_now() -> datetime:
    return datetime.now(pytz.UTC)
