from dataclasses import dataclass, asdict
from typing import Dict, Any

@dataclass
class RiskMetrics:
    sharpe_ratio: float
    sortino_ratio: float
    max_drawdown: float # % (<= 0)
    volatility: float # annualized % (>= 0)
    value_at_risk: float # 95% 1-period, % (negative = loss)
    beta: float
    alpha: float # % over assumed market return
    information_ratio: float

    @staticmethod
    def neutral() -> 'RiskMetrics':
        """ Result for series too short to say anything. """
        return RiskMetrics(0.0, 0.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
