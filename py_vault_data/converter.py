"""
py_vault_data/converter.py
Smallest-unit -> fiat conversion and price sources.
"""
import time
import asyncio
from typing import Callable, Optional

import requests

from .cache import TTLCache
from .errors import ExternalServiceError
from .interface import IUnitConverter

# 1 token = 10^7 smallest units (stroops)
UNITS_PER_TOKEN = 10_000_000

# Live prices are refetched at most once per minute
PRICE_TTL_SECONDS = 60.0

COINGECKO_PRICE_URL = "https://api.coingecko.com/api/v3/simple/price"


def fetch_coingecko_price(coin_id: str = "stellar", currency: str = "usd", timeout: float = 10.0) -> float:
    """Fetches the current token price. Raises ExternalServiceError on any failure."""
    try:
        resp = requests.get(COINGECKO_PRICE_URL,
                            params={"ids": coin_id, "vs_currencies": currency},
                            timeout=timeout)
        resp.raise_for_status()
        price = resp.json()[coin_id][currency]
    except (requests.exceptions.RequestException, KeyError, TypeError, ValueError) as e:
        raise ExternalServiceError(f"Price lookup failed for {coin_id}: {e}") from e

    return float(price)


class StroopConverter(IUnitConverter):
    """
    amount (smallest units) / units_per_token * price.
    price_source is a blocking callable; it runs in a worker thread.
    A fetched price is reused for price_ttl_seconds.
    """

    def __init__(self, price_source: Callable[[], float], units_per_token: int = UNITS_PER_TOKEN,
                 price_ttl_seconds: float = PRICE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.price_source = price_source
        self.units_per_token = units_per_token
        self._prices = TTLCache(price_ttl_seconds, clock=clock)
        self._last_price: Optional[float] = None

    @classmethod
    def with_static_price(cls, price: float, units_per_token: int = UNITS_PER_TOKEN) -> 'StroopConverter':
        return cls(lambda: price, units_per_token)

    async def _current_price(self) -> float:
        price = self._prices.get("price")
        if price is not None:
            return price

        try:
            price = await asyncio.to_thread(self.price_source)
        except ExternalServiceError:
            if self._last_price is None:
                raise
            # Best effort: keep converting with the last good price
            return self._last_price

        self._prices.set("price", price)
        self._last_price = price
        return price

    async def to_fiat(self, amount: float) -> float:
        return (amount / self.units_per_token) * await self._current_price()
