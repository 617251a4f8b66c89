from datetime import datetime, timedelta
from typing import Callable, Iterator, List, Tuple

from py_vault_data.interface import IVaultDataAccessor
from py_vault_data.models import VaultRecord, utc_now
from py_financial_math.core import annualize_return
from py_financial_math.series import calculate_drawdown_series, rolling_volatility

from .config import AnalyticsConfig
from .models import PerformancePoint, PortfolioPerformancePoint
from .risk import PortfolioRiskEngine
from .snapshots import valid_snapshots

SECONDS_PER_DAY = 24 * 60 * 60


def relative_apy(first: Tuple[datetime, float], point: Tuple[datetime, float], cap: float) -> float:
    """ Annualized yield of `point` against the first point of the series. """
    first_time, first_value = first
    time, value = point
    days_passed = (time - first_time).total_seconds() / SECONDS_PER_DAY
    if days_passed <= 0 or first_value <= 0:
        return 0.0
    return annualize_return((value - first_value) / first_value, days_passed, cap)


def iter_performance_points(series: List[Tuple[datetime, float]], cap: float) -> Iterator[PerformancePoint]:
    """ Lazily yields chart points for a (timestamp, value) series, oldest first. """
    if not series:
        return
    first = series[0]
    for point in series:
        yield PerformancePoint(
            date=point[0].date().isoformat(),
            value=point[1],
            apy=relative_apy(first, point, cap)
        )


class PerformanceHistory:
    """ Chart series for one vault and for a whole portfolio. """

    def __init__(self, accessor: IVaultDataAccessor, risk_engine: PortfolioRiskEngine,
                 config: AnalyticsConfig, clock: Callable[[], datetime] = utc_now):
        self.accessor = accessor
        self.risk_engine = risk_engine
        self.config = config
        self.clock = clock

    async def get_historical_performance(self, vault_id: str, days: int = 30) -> List[PerformancePoint]:
        vault = await self.accessor.get_vault(vault_id)
        if vault is None:
            return []

        since = self.clock() - timedelta(days=days)
        snapshots = await self.accessor.get_snapshots([vault_id], since=since)
        clean = sorted(valid_snapshots(snapshots, self.config.max_valid_value),
                       key=lambda s: s.timestamp)

        series = [(s.timestamp, s.total_value_fiat) for s in clean]
        return list(iter_performance_points(series, self.config.snapshot_apy_cap))

    async def get_portfolio_performance_history(self, vaults: List[VaultRecord], days: int = 30) -> List[PortfolioPerformancePoint]:
        series = await self.risk_engine.portfolio_series(vaults, days)
        if not series:
            return []

        values = [value for _, value in series]
        volatility = rolling_volatility(values, self.config.rolling_window, self.config.periods_per_year)
        drawdowns = calculate_drawdown_series(values)
        cap = self.config.snapshot_apy_cap

        return [
            PortfolioPerformancePoint(
                date=timestamp.date().isoformat(),
                value=value,
                apy=relative_apy(series[0], (timestamp, value), cap),
                volatility=volatility[i],
                drawdown=drawdowns[i],
                timestamp=timestamp
            )
            for i, (timestamp, value) in enumerate(series)
        ]
