import math
from typing import List

def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))

def median_high(values: List[float]) -> float:
    """
    Upper median: sorted(values)[n // 2].
    Returns 0.0 for an empty list.
    """
    if not values:
        return 0.0
    ordered = sorted(values)
    return ordered[len(ordered) // 2]

def annualize_return(total_return: float, days: float, cap: float) -> float:
    """
    Compounds a period return to a yearly yield in %.
    Formula: ((1 + r) ^ (365 / days) - 1) * 100, clamped to [-100, cap].
    Saturates at cap instead of overflowing for short periods with large returns.
    """
    if days <= 0:
        return 0.0

    growth = 1.0 + total_return
    if growth <= 0:
        return -100.0

    exponent = 365.0 / days
    if exponent * math.log(growth) >= math.log1p(cap / 100.0):
        return cap

    return clamp((growth ** exponent - 1.0) * 100.0, -100.0, cap)

def period_yield(total_return: float, days: float, cap: float) -> float:
    """
    Yield in % for a holding period.
    Under one day the raw return is reported (annualizing minutes of data explodes),
    otherwise the annualized one. Both are clamped to [-100, cap].
    """
    if days < 1:
        return clamp(total_return * 100.0, -100.0, cap)
    return annualize_return(total_return, days, cap)
