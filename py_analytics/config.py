"""
py_analytics/config.py
Engine tunables. Loaded from config/analytics.json when present.
"""
import os
import json
from dataclasses import dataclass, field, fields
from typing import Dict, List

from .logger import log_event

DEFAULT_PALETTE = ['#dce85d', '#74b97f', '#60a5fa', '#e06c6e', '#dca204', '#9b87f5', '#f97316', '#22d3ee']

# Allowlist of asset contract ids per network (fast path, no lookup needed)
DEFAULT_KNOWN_TOKENS = {
    "testnet": {
        "CDLZFC3SYJYDZT7K67VZ75HPJVIEUVNIXF47ZG2FB2RMQQVU2HHGCYSC": "XLM",
        "CBIELTK6YBZJU5UP2WWQEUCYKLPU6AUNZ2BQ4WWFEIE3USCIHMXQDAMA": "USDC", # Soroswap USDC
        "CAZRY5GSFBFXD7H6GAFBA5YGYQTDXU4QKWKMYFWBAZFUCURN3WKX6LF5": "USDC", # Official testnet USDC
    },
    "futurenet": {
        "CB64D3G7SM2RTH6JSGG34DDTFTQ5CFDKVDZJZSODMCX4NJ2HV2KN7OHT": "XLM",
    },
    "mainnet": {
        "CAS3J7GYLGXMF6TDJBBYYSE3HQ6BBSMLNUQ34T6TZMYMW2EVH34XOWMA": "XLM",
    },
}


@dataclass
class AnalyticsConfig:
    # Risk model
    risk_free_rate: float = 0.04
    market_return: float = 0.10
    periods_per_year: int = 365
    risk_lookback_days: int = 30
    rolling_window: int = 7

    # Data quality
    max_valid_value: float = 1_000_000_000.0
    outlier_ratio: float = 10.0
    withdrawal_drop_ratio: float = 0.30
    corrupted_baseline_factor: float = 2.0
    noise_tolerance: float = 0.01

    # APY
    min_days_invested: float = 0.01
    cost_basis_apy_cap: float = 100_000.0
    snapshot_apy_cap: float = 10_000.0

    # Asset names
    cache_ttl_seconds: float = 3600.0
    token_list_url: str = "https://api.soroswap.finance/api/tokens"
    request_timeout: float = 10.0
    price_ttl_seconds: float = 60.0
    known_tokens: Dict[str, Dict[str, str]] = field(default_factory=lambda: {k: dict(v) for k, v in DEFAULT_KNOWN_TOKENS.items()})
    native_assets: Dict[str, str] = field(default_factory=lambda: {"testnet": "XLM", "futurenet": "XLM", "mainnet": "XLM"})

    # 1 token = 10^7 smallest units
    units_per_token: int = 10_000_000

    # Presentation helpers
    palette: List[str] = field(default_factory=lambda: list(DEFAULT_PALETTE))
    recent_transactions_limit: int = 50
    recent_snapshots_limit: int = 20

    def native_asset(self, network: str) -> str:
        return self.native_assets.get(network.lower(), "XLM")


def load_config(config_path: str = "config/analytics.json") -> AnalyticsConfig:
    """
    Loads the engine configuration from a JSON file.
    Missing file -> defaults. Unknown keys are ignored. Invalid file -> defaults (logged).
    """
    if not os.path.exists(config_path):
        return AnalyticsConfig()

    try:
        with open(config_path, "r") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        log_event("Config", f"Config Error in {config_path}: {e}. Using defaults.", "warning")
        return AnalyticsConfig()

    if not isinstance(data, dict):
        log_event("Config", f"Config Error in {config_path}: expected an object. Using defaults.", "warning")
        return AnalyticsConfig()

    known = {f.name for f in fields(AnalyticsConfig)}
    ignored = sorted(k for k in data if k not in known)
    if ignored:
        log_event("Config", f"Ignoring unknown keys: {', '.join(ignored)}", "warning")

    return AnalyticsConfig(**{k: v for k, v in data.items() if k in known})
