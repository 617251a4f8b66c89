import asyncio
from datetime import datetime, timedelta

import pytest
import pytz

from py_vault_data.memory import InMemoryVaultStore
from py_vault_data.models import ValueSnapshot, VaultRecord
from py_analytics.config import AnalyticsConfig
from py_analytics.risk import PortfolioRiskEngine
from py_analytics.snapshots import hourly_portfolio_series, reject_outliers, clean_per_vault

T0 = datetime(2026, 3, 1, 10, 0, tzinfo=pytz.UTC)
NOW = T0 + timedelta(days=2)


def at(minutes):
    return T0 + timedelta(minutes=minutes)

def make_engine(store):
    return PortfolioRiskEngine(store, AnalyticsConfig(), clock=lambda: NOW)

def hourly_store(values_by_vault):
    store = InMemoryVaultStore()
    for vault_id, values in values_by_vault.items():
        store.add_vault(VaultRecord(vault_id, "GOWNER"))
        for i, value in enumerate(values):
            store.add_snapshot(ValueSnapshot(vault_id, value, T0 + timedelta(hours=i, minutes=5)))
    return store


def test_hourly_series_deduplicates_per_vault():
    snaps = [
        ValueSnapshot("a", 100.0, at(5)),
        ValueSnapshot("a", 110.0, at(40)),   # replaces the 10:05 reading
        ValueSnapshot("b", 50.0, at(20)),
        ValueSnapshot("a", 120.0, at(70)),
        ValueSnapshot("b", 60.0, at(90)),
    ]
    series = hourly_portfolio_series(snaps)

    assert len(series) == 2
    assert series[0][1] == 160.0
    assert series[0][0] == at(40)
    assert series[1][1] == 180.0
    assert series[1][0] == at(90)

def test_hourly_series_empty():
    assert hourly_portfolio_series([]) == []

def test_reject_outliers():
    snaps = [ValueSnapshot("a", v, at(i)) for i, v in enumerate([1000.0, 1010.0, 20000.0, 50.0, 0.0, 2e9, 990.0])]
    kept = [s.total_value_fiat for s in reject_outliers(snaps)]
    assert kept == [1000.0, 1010.0, 990.0]

def test_outliers_judged_per_vault():
    # A small vault is not an outlier just because a big vault exists
    snaps = [ValueSnapshot("big", 100_000.0, at(i)) for i in range(3)]
    snaps += [ValueSnapshot("small", 10.0, at(i)) for i in range(3)]
    assert len(clean_per_vault(snaps)) == 6

def test_neutral_metrics_with_too_little_history():
    engine = make_engine(hourly_store({"a": [100.0]}))
    vaults = asyncio.run(engine.accessor.list_vaults("GOWNER", "testnet"))

    m = asyncio.run(engine.compute(vaults))
    assert m.beta == 1.0
    assert m.sharpe_ratio == 0.0
    assert m.volatility == 0.0

    assert asyncio.run(engine.compute([])).to_dict() == m.to_dict()

def test_portfolio_metrics():
    store = hourly_store({"a": [100.0, 104.0, 98.0, 103.0], "b": [200.0, 200.0, 202.0, 199.0]})
    engine = make_engine(store)
    vaults = asyncio.run(store.list_vaults("GOWNER", "testnet"))

    m = asyncio.run(engine.compute(vaults))
    # Summed series: 300, 304, 300, 302
    assert m.max_drawdown == pytest.approx((300.0 - 304.0) / 304.0 * 100)
    assert m.volatility > 0
    assert m.beta == 1.0
    assert m.value_at_risk == pytest.approx((300.0 - 304.0) / 304.0 * 100)

def test_corrupted_readings_do_not_move_drawdown():
    clean_store = hourly_store({"a": [1000.0, 1010.0, 1020.0, 1030.0]})
    vaults = asyncio.run(clean_store.list_vaults("GOWNER", "testnet"))
    clean = asyncio.run(make_engine(clean_store).compute(vaults))

    noisy_store = hourly_store({"a": [1000.0, 1010.0, 1020.0, 1030.0]})
    noisy_store.add_snapshot(ValueSnapshot("a", 90_000.0, T0 + timedelta(hours=5)))
    noisy_store.add_snapshot(ValueSnapshot("a", 5e9, T0 + timedelta(hours=6)))
    noisy_store.add_snapshot(ValueSnapshot("a", 0.0, T0 + timedelta(hours=7)))
    noisy = asyncio.run(make_engine(noisy_store).compute(vaults))

    assert noisy.to_dict() == clean.to_dict()
    assert clean.max_drawdown == 0.0

def test_lookback_window_excludes_old_snapshots():
    store = hourly_store({"a": [100.0, 101.0]})
    store.add_snapshot(ValueSnapshot("a", 10.0, NOW - timedelta(days=45)))
    engine = make_engine(store)
    vaults = asyncio.run(store.list_vaults("GOWNER", "testnet"))

    series = asyncio.run(engine.portfolio_series(vaults, 30))
    assert [v for _, v in series] == [100.0, 101.0]
