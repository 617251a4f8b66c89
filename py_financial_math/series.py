import math
import statistics
from typing import List

def simple_returns(values: List[float]) -> List[float]:
    """ Period-over-period returns. Points whose predecessor is <= 0 are skipped. """
    returns = []
    for i in range(1, len(values)):
        prev = values[i-1]
        curr = values[i]
        if prev > 0:
            returns.append((curr - prev) / prev)
    return returns

def population_std(values: List[float]) -> float:
    if not values:
        return 0.0
    return statistics.pstdev(values)

def annualized_volatility(returns: List[float], periods_per_year: int = 365) -> float:
    """ StdDev(returns) * sqrt(periods) as a percentage. """
    return population_std(returns) * math.sqrt(periods_per_year) * 100.0

def calculate_drawdown_series(values: List[float]) -> List[float]:
    """
    Drawdown in % for each point against the running peak (High Watermark).
    DD = (Current - Peak) / Peak * 100, so every entry is <= 0.
    """
    if not values: return []

    drawdowns = []
    peak = values[0]

    for val in values:
        if val > peak:
            peak = val

        dd = 0.0
        if peak > 0:
            dd = (val - peak) / peak * 100.0

        drawdowns.append(min(0.0, dd))

    return drawdowns

def max_drawdown(values: List[float]) -> float:
    """ Most negative drawdown in % (0.0 for flat, rising or empty series). """
    dd_series = calculate_drawdown_series(values)
    return min(dd_series) if dd_series else 0.0

def rolling_volatility(values: List[float], window: int = 7, periods_per_year: int = 365) -> List[float]:
    """
    Annualized volatility per point over the `window` returns leading up to it.
    Points without a full window get 0.0.
    """
    result = []
    for i in range(len(values)):
        if i < window:
            result.append(0.0)
            continue
        window_returns = simple_returns(values[i - window:i + 1])
        result.append(annualized_volatility(window_returns, periods_per_year) if window_returns else 0.0)
    return result
