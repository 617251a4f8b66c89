import asyncio
import types
from datetime import datetime, timedelta

import pytest
import pytz

from py_vault_data.converter import StroopConverter
from py_vault_data.interface import IAssetLookup
from py_vault_data.memory import InMemoryVaultStore
from py_vault_data.models import ValueSnapshot, VaultRecord
from py_analytics.engine import build_engine
from py_analytics.history import iter_performance_points

T0 = datetime(2026, 2, 1, tzinfo=pytz.UTC)


class NoLookup(IAssetLookup):
    def lookup(self, asset_id, network):
        return None


def make_engine(store, now):
    return build_engine(store, StroopConverter.with_static_price(1.0), asset_lookup=NoLookup(), clock=lambda: now)


def test_points_are_lazy():
    points = iter_performance_points([(T0, 100.0), (T0 + timedelta(days=1), 101.0)], 10000)
    assert isinstance(points, types.GeneratorType)
    assert next(points).apy == 0.0

def test_historical_performance():
    store = InMemoryVaultStore()
    store.add_vault(VaultRecord("v1", "GOWNER"))
    store.add_snapshot(ValueSnapshot("v1", 1000.0, T0))
    store.add_snapshot(ValueSnapshot("v1", 0.0, T0 + timedelta(days=5)))  # corrupted, skipped
    store.add_snapshot(ValueSnapshot("v1", 1100.0, T0 + timedelta(days=10)))

    points = asyncio.run(make_engine(store, T0 + timedelta(days=11)).get_historical_performance("v1", 30))

    assert [p.date for p in points] == ["2026-02-01", "2026-02-11"]
    assert [p.value for p in points] == [1000.0, 1100.0]
    assert points[0].apy == 0.0
    assert points[1].apy == pytest.approx((1.1 ** 36.5 - 1) * 100)

def test_historical_performance_window_and_cap():
    store = InMemoryVaultStore()
    store.add_vault(VaultRecord("v1", "GOWNER"))
    store.add_snapshot(ValueSnapshot("v1", 10.0, T0))
    store.add_snapshot(ValueSnapshot("v1", 100.0, T0 + timedelta(days=40)))
    store.add_snapshot(ValueSnapshot("v1", 300.0, T0 + timedelta(days=42)))

    points = asyncio.run(make_engine(store, T0 + timedelta(days=43)).get_historical_performance("v1", 7))
    # The t0 snapshot is outside the 7-day window
    assert [p.value for p in points] == [100.0, 300.0]
    assert points[1].apy == 10000

def test_historical_performance_unknown_or_empty():
    store = InMemoryVaultStore()
    store.add_vault(VaultRecord("v1", "GOWNER"))
    engine = make_engine(store, T0)

    assert asyncio.run(engine.get_historical_performance("missing")) == []
    assert asyncio.run(engine.get_historical_performance("v1")) == []

def test_portfolio_performance_history():
    values = [100.0, 101.0, 102.0, 103.0, 104.0, 105.0, 106.0, 107.0, 90.0, 108.0]
    store = InMemoryVaultStore()
    store.add_vault(VaultRecord("v1", "GOWNER"))
    for i, value in enumerate(values):
        store.add_snapshot(ValueSnapshot("v1", value, T0 + timedelta(hours=i)))

    engine = make_engine(store, T0 + timedelta(days=1))
    points = asyncio.run(engine.get_portfolio_performance_history("GOWNER", "testnet", 30))

    assert [p.value for p in points] == values
    assert [p.volatility for p in points[:7]] == [0.0] * 7
    assert all(p.volatility > 0 for p in points[7:])
    assert points[8].drawdown == pytest.approx((90.0 - 107.0) / 107.0 * 100)
    assert points[9].drawdown == 0.0
    assert all(p.drawdown <= 0 for p in points)
    assert points[0].apy == 0.0
    assert all(-100 <= p.apy <= 10000 for p in points)
    assert points[3].timestamp == T0 + timedelta(hours=3)
    assert points[3].to_dict()["date"] == "2026-02-01"

def test_portfolio_performance_history_without_vaults():
    engine = make_engine(InMemoryVaultStore(), T0)
    assert asyncio.run(engine.get_portfolio_performance_history("GNOBODY")) == []
