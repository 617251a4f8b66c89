import asyncio
import random
from unittest import mock

import pytest
import requests

from py_vault_data.errors import ExternalServiceError
from py_vault_data.interface import IAssetLookup
from py_analytics.assets import AssetNameResolver, SoroswapTokenLookup, looks_like_contract_id, shorten_id
from py_vault_data.cache import TTLCache
from py_analytics.config import DEFAULT_KNOWN_TOKENS
from py_analytics.correlation import HeuristicCorrelationStrategy, HIGH_BAND, NATIVE_BAND, LOW_BAND

TESTNET_XLM = "CDLZFC3SYJYDZT7K67VZ75HPJVIEUVNIXF47ZG2FB2RMQQVU2HHGCYSC"
UNKNOWN_ID = "CABC" + "D" * 48 + "WXYZ"


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class MockLookup(IAssetLookup):
    def __init__(self, answer=None, fail=False):
        self.answer = answer
        self.fail = fail
        self.calls = 0

    def lookup(self, asset_id, network):
        self.calls += 1
        if self.fail:
            raise ExternalServiceError("token list down")
        return self.answer


def test_ttl_cache_expiry():
    clock = FakeClock()
    cache = TTLCache(ttl_seconds=3600, clock=clock)
    cache.set("k", "v")

    clock.now = 3599
    assert cache.get("k") == "v"
    assert "k" in cache

    clock.now = 3600
    assert cache.get("k") is None
    assert len(cache) == 0

def test_contract_id_helpers():
    assert looks_like_contract_id(UNKNOWN_ID)
    assert not looks_like_contract_id("XLM")
    assert not looks_like_contract_id("G" + UNKNOWN_ID[1:])
    assert shorten_id(UNKNOWN_ID) == "CABC...WXYZ"

def test_resolver_allowlist_skips_lookup():
    lookup = MockLookup(answer="SHOULD-NOT-BE-USED")
    resolver = AssetNameResolver(DEFAULT_KNOWN_TOKENS, lookup)

    assert asyncio.run(resolver.resolve(TESTNET_XLM, "testnet")) == "XLM"
    assert lookup.calls == 0

def test_resolver_caches_lookup_results():
    lookup = MockLookup(answer="AQUA")
    resolver = AssetNameResolver(DEFAULT_KNOWN_TOKENS, lookup)

    assert asyncio.run(resolver.resolve(UNKNOWN_ID, "testnet")) == "AQUA"
    assert asyncio.run(resolver.resolve(UNKNOWN_ID, "testnet")) == "AQUA"
    assert lookup.calls == 1

def test_resolver_lookup_expires_with_ttl():
    clock = FakeClock()
    lookup = MockLookup(answer="AQUA")
    resolver = AssetNameResolver(DEFAULT_KNOWN_TOKENS, lookup, TTLCache(3600, clock=clock))

    asyncio.run(resolver.resolve(UNKNOWN_ID, "testnet"))
    clock.now = 7200
    asyncio.run(resolver.resolve(UNKNOWN_ID, "testnet"))
    assert lookup.calls == 2

def test_resolver_placeholder_not_cached():
    cache = TTLCache()
    resolver = AssetNameResolver(DEFAULT_KNOWN_TOKENS, MockLookup(fail=True), cache)

    assert asyncio.run(resolver.resolve(UNKNOWN_ID, "testnet")) == "CABC...WXYZ"
    assert len(cache) == 0

    # A miss (no error) also ends in the placeholder
    resolver = AssetNameResolver(DEFAULT_KNOWN_TOKENS, MockLookup(answer=None))
    assert asyncio.run(resolver.resolve(UNKNOWN_ID, "mainnet")) == "CABC...WXYZ"

def test_soroswap_lookup():
    response = mock.Mock()
    response.json.return_value = [
        {"network": "mainnet", "assets": [{"contract": UNKNOWN_ID, "code": "WRONG"}]},
        {"network": "testnet", "assets": [{"contract": UNKNOWN_ID, "code": "AQUA", "name": "Aqua Token"}]}
    ]
    lookup = SoroswapTokenLookup("https://example.invalid/tokens", timeout=5)

    with mock.patch("py_analytics.assets.requests.get", return_value=response) as get:
        assert lookup.lookup(UNKNOWN_ID, "TESTNET") == "AQUA"
        assert lookup.lookup(UNKNOWN_ID, "futurenet") is None
        assert get.call_args.kwargs["timeout"] == 5

    with mock.patch("py_analytics.assets.requests.get", side_effect=requests.exceptions.Timeout("slow")):
        with pytest.raises(ExternalServiceError):
            lookup.lookup(UNKNOWN_ID, "testnet")

def test_correlation_bands():
    strategy = HeuristicCorrelationStrategy({"testnet": "XLM"})
    assert strategy.band("USDC", "USDT") == HIGH_BAND
    assert strategy.band("BTC", "WBTC") == HIGH_BAND
    assert strategy.band("XLM", "AQUA") == NATIVE_BAND
    assert strategy.band("USDC", "XLM") == NATIVE_BAND
    assert strategy.band("AQUA", "BLND") == LOW_BAND

def test_correlation_estimate_pairs():
    strategy = HeuristicCorrelationStrategy({"testnet": "XLM"}, rng=random.Random(42))
    correlations = strategy.estimate(["XLM", "USDC", "USDC", "AQUA"], "testnet")

    # 3 distinct assets -> 3 unordered pairs
    pairs = [(c.asset1, c.asset2) for c in correlations]
    assert pairs == [("XLM", "USDC"), ("XLM", "AQUA"), ("USDC", "AQUA")]

    for c in correlations:
        low, high = strategy.band(c.asset1, c.asset2, "testnet")
        assert low <= c.correlation <= high
        assert c.correlation == round(c.correlation, 2)

    assert strategy.estimate(["XLM"], "testnet") == []
    assert strategy.estimate(["XLM", "XLM"], "testnet") == []

def test_correlation_deterministic_with_seeded_rng():
    a = HeuristicCorrelationStrategy(rng=random.Random(7)).estimate(["XLM", "USDC", "AQUA"], "testnet")
    b = HeuristicCorrelationStrategy(rng=random.Random(7)).estimate(["XLM", "USDC", "AQUA"], "testnet")
    assert a == b
