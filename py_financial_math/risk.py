import math
from typing import List

from .models import RiskMetrics
from .series import simple_returns, population_std, max_drawdown

def sharpe_ratio(returns: List[float], risk_free_rate: float, periods_per_year: int = 365) -> float:
    """
    (Mean * N - Rf) / (StdDev * sqrt(N)).
    0.0 when the series has no variation.
    """
    if not returns:
        return 0.0
    annualized_return = (sum(returns) / len(returns)) * periods_per_year
    annualized_std = population_std(returns) * math.sqrt(periods_per_year)
    if annualized_std <= 0:
        return 0.0
    return (annualized_return - risk_free_rate) / annualized_std

def sortino_ratio(returns: List[float], risk_free_rate: float, periods_per_year: int = 365) -> float:
    """
    Like Sharpe, but the deviation only counts losing periods: sqrt(mean(r^2 | r < 0)).
    Without any losing period it equals the Sharpe ratio.
    """
    if not returns:
        return 0.0
    negative = [r for r in returns if r < 0]
    if not negative:
        return sharpe_ratio(returns, risk_free_rate, periods_per_year)

    downside_std = math.sqrt(sum(r * r for r in negative) / len(negative)) * math.sqrt(periods_per_year)
    if downside_std <= 0:
        return sharpe_ratio(returns, risk_free_rate, periods_per_year)

    annualized_return = (sum(returns) / len(returns)) * periods_per_year
    return (annualized_return - risk_free_rate) / downside_std

def value_at_risk(returns: List[float], confidence: float = 0.95) -> float:
    """
    Historical VaR in %: the (1 - confidence) quantile of the sorted returns.
    Negative values are losses.
    """
    if not returns:
        return 0.0
    ordered = sorted(returns)
    index = int(math.floor(len(ordered) * (1.0 - confidence) + 1e-9))
    index = min(index, len(ordered) - 1)
    return ordered[index] * 100.0

def information_ratio(returns: List[float], market_return: float, periods_per_year: int = 365) -> float:
    """
    Excess annual return over a flat market return, divided by the tracking error
    sqrt(mean((r - market/N)^2)) * sqrt(N).
    """
    if not returns:
        return 0.0
    market_per_period = market_return / periods_per_year
    excess = [r - market_per_period for r in returns]
    tracking_error = math.sqrt(sum(e * e for e in excess) / len(excess)) * math.sqrt(periods_per_year)
    if tracking_error <= 0:
        return 0.0
    annualized_return = (sum(returns) / len(returns)) * periods_per_year
    return (annualized_return - market_return) / tracking_error

def compute_risk_metrics(values: List[float],
                         risk_free_rate: float = 0.04,
                         market_return: float = 0.10,
                         periods_per_year: int = 365) -> RiskMetrics:
    """
    Full risk profile of a value series (oldest first).
    Beta is fixed at 1.0: no market index is modeled.
    """
    if not values or len(values) < 2:
        return RiskMetrics.neutral()

    returns = simple_returns(values)
    if not returns:
        return RiskMetrics.neutral()

    annualized_return = (sum(returns) / len(returns)) * periods_per_year
    volatility = population_std(returns) * math.sqrt(periods_per_year) * 100.0

    return RiskMetrics(
        sharpe_ratio=sharpe_ratio(returns, risk_free_rate, periods_per_year),
        sortino_ratio=sortino_ratio(returns, risk_free_rate, periods_per_year),
        max_drawdown=max_drawdown(values),
        volatility=volatility,
        value_at_risk=value_at_risk(returns),
        beta=1.0,
        alpha=(annualized_return - market_return) * 100.0,
        information_ratio=information_ratio(returns, market_return, periods_per_year)
    )
