# Expose key functions for cleaner imports
from .models import RiskMetrics
from .core import clamp, median_high, annualize_return, period_yield
from .series import simple_returns, population_std, annualized_volatility, calculate_drawdown_series, max_drawdown, rolling_volatility
from .risk import sharpe_ratio, sortino_ratio, value_at_risk, information_ratio, compute_risk_metrics
