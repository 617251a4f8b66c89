"""
py_analytics/assets.py
Asset id -> human readable symbol.
"""
import asyncio
from typing import Dict, Optional

import requests

from py_vault_data.cache import TTLCache
from py_vault_data.errors import ExternalServiceError
from py_vault_data.interface import IAssetLookup

from .logger import log_event


def looks_like_contract_id(value: str) -> bool:
    """Soroban contract ids are 56 chars starting with 'C'."""
    return isinstance(value, str) and len(value) == 56 and value.startswith("C")


def shorten_id(asset_id: str) -> str:
    return f"{asset_id[:4]}...{asset_id[-4:]}"


class SoroswapTokenLookup(IAssetLookup):
    """ Looks symbols up in the public Soroswap token list. """

    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout

    def lookup(self, asset_id: str, network: str) -> Optional[str]:
        try:
            resp = requests.get(self.url, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise ExternalServiceError(f"Token list unavailable: {e}") from e

        if not isinstance(data, list):
            return None

        network_data = next((n for n in data if isinstance(n, dict) and n.get("network") == network.lower()), None)
        if not network_data:
            return None

        for asset in network_data.get("assets") or []:
            if asset.get("contract") == asset_id:
                return asset.get("code") or asset.get("name")
        return None


class AssetNameResolver:
    """
    Resolution order: cache -> static allowlist -> external lookup -> shortened id.
    Placeholders are not cached, so a later lookup can still succeed.
    """

    def __init__(self,
                 known_tokens: Dict[str, Dict[str, str]],
                 lookup: Optional[IAssetLookup] = None,
                 cache: Optional[TTLCache] = None):
        self.known_tokens = known_tokens
        self.lookup = lookup
        self.cache = cache if cache is not None else TTLCache()

    async def resolve(self, asset_id: str, network: str) -> str:
        cached = self.cache.get(asset_id)
        if cached is not None:
            return cached

        network_tokens = self.known_tokens.get(network.lower(), {})
        if asset_id in network_tokens:
            name = network_tokens[asset_id]
            self.cache.set(asset_id, name)
            return name

        if self.lookup is not None:
            try:
                name = await asyncio.to_thread(self.lookup.lookup, asset_id, network)
            except ExternalServiceError as e:
                log_event("AssetNames", f"Failed to resolve {asset_id}: {e}", "warning")
                name = None

            if name:
                self.cache.set(asset_id, name)
                return name

        return shorten_id(asset_id)
