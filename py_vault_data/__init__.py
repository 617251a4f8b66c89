# Expose key types for cleaner imports
from .errors import VaultNotFoundError, DataValidationError, ExternalServiceError
from .models import (TransactionType, VaultTransaction, ValueSnapshot, VaultRecord, VaultState,
                     AssetBalance, AssetConfig, MAX_PLAUSIBLE_VALUE, to_utc, utc_now)
from .interface import IVaultDataAccessor, IUnitConverter, IVaultStateReader, IAssetLookup
from .memory import InMemoryVaultStore, StoredStateReader, load_store
from .converter import StroopConverter, fetch_coingecko_price
from .cache import TTLCache
