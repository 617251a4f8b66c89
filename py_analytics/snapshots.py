"""
py_analytics/snapshots.py
Snapshot hygiene (bounds + outlier rejection) and the hourly portfolio series.
"""
from collections import defaultdict
from datetime import datetime
from typing import List, Optional, Tuple

import pandas as pd

from py_vault_data.models import ValueSnapshot, MAX_PLAUSIBLE_VALUE
from py_financial_math.core import median_high


def valid_snapshots(snapshots: List[ValueSnapshot], max_value: float = MAX_PLAUSIBLE_VALUE) -> List[ValueSnapshot]:
    """ Keeps snapshots with 0 < value < max_value, order preserved. """
    return [s for s in snapshots if 0 < s.total_value_fiat < max_value]


def reject_outliers(snapshots: List[ValueSnapshot],
                    max_value: float = MAX_PLAUSIBLE_VALUE,
                    ratio: float = 10.0) -> List[ValueSnapshot]:
    """
    Bounds filter, then drops values more than `ratio`x away from the median
    of the remaining values (in either direction).
    """
    valid = valid_snapshots(snapshots, max_value)
    if not valid:
        return []

    median = median_high([s.total_value_fiat for s in valid]) or 1.0
    lower = 1.0 / ratio
    return [s for s in valid if lower <= s.total_value_fiat / median <= ratio]


def latest_valid(snapshots: List[ValueSnapshot], max_value: float = MAX_PLAUSIBLE_VALUE) -> Optional[ValueSnapshot]:
    valid = valid_snapshots(snapshots, max_value)
    if not valid:
        return None
    return max(valid, key=lambda s: s.timestamp)


def clean_per_vault(snapshots: List[ValueSnapshot],
                    max_value: float = MAX_PLAUSIBLE_VALUE,
                    ratio: float = 10.0) -> List[ValueSnapshot]:
    """ Applies reject_outliers to each vault's own history. """
    by_vault = defaultdict(list)
    for snap in snapshots:
        by_vault[snap.vault_id].append(snap)

    cleaned = []
    for vault_snaps in by_vault.values():
        cleaned.extend(reject_outliers(vault_snaps, max_value, ratio))
    return sorted(cleaned, key=lambda s: s.timestamp)


def hourly_portfolio_series(snapshots: List[ValueSnapshot]) -> List[Tuple[datetime, float]]:
    """
    Builds one portfolio value series out of many vaults' snapshots.
    1. Bucket by UTC hour.
    2. Keep only the latest snapshot per vault per bucket (no double counting).
    3. Sum the vaults per bucket; the point's time is the latest timestamp in it.
    Returns [(timestamp, total_value)] oldest first.
    """
    if not snapshots:
        return []

    df = pd.DataFrame([{
        "vault_id": s.vault_id,
        "timestamp": s.timestamp,
        "value": s.total_value_fiat
    } for s in snapshots])

    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    df["hour"] = df["timestamp"].dt.floor("h")
    df = df.sort_values("timestamp", kind="mergesort")

    latest_per_vault = df.groupby(["hour", "vault_id"], sort=True).tail(1)
    per_hour = latest_per_vault.groupby("hour", sort=True).agg(
        timestamp=("timestamp", "max"),
        value=("value", "sum")
    )

    return [(row.timestamp.to_pydatetime(), float(row.value)) for row in per_hour.itertuples()]
