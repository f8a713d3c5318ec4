"""Helper functions to compute portfolio metrics."""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Mapping

import numpy as np
import pandas as pd

from ..config.constants import TRADING_DAYS_IN_YEAR

__all__ = [
    "PortfolioMetrics",
    "compute_performance_metrics",
    "max_drawdown",
]


@dataclass(frozen=True)
class PortfolioMetrics:
    """Summary statistics for a portfolio value timeseries."""

    start_value: float
    end_value: float
    total_return: float
    annualized_return: float
    annualized_volatility: float
    max_drawdown: float
    n_periods: int

    def as_dict(self) -> Mapping[str, float]:
        return {
            "start_value": self.start_value,
            "end_value": self.end_value,
            "total_return": self.total_return,
            "annualized_return": self.annualized_return,
            "annualized_volatility": self.annualized_volatility,
            "max_drawdown": self.max_drawdown,
            "n_periods": self.n_periods,
        }


def max_drawdown(values: pd.Series) -> float:
    """Return the maximum drawdown from a value series."""

    if values.empty:
        return 0.0
    cumulative_max = values.cummax()
    drawdown = values / cumulative_max - 1.0
    return float(drawdown.min())


def compute_performance_metrics(
    values: pd.Series,
    *,
    periods_per_year: int = TRADING_DAYS_IN_YEAR,
) -> PortfolioMetrics:
    """Summarise a total-value series (one observation per trading date)."""

    values = values.dropna().astype(float)
    if values.empty:
        return PortfolioMetrics(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0)

    start_value = float(values.iloc[0])
    end_value = float(values.iloc[-1])
    total_return = end_value / start_value - 1.0 if start_value else 0.0

    returns = values.pct_change().dropna()
    n_periods = len(returns)
    if n_periods == 0:
        annualized_return = 0.0
        annualized_vol = 0.0
    else:
        growth = 1.0 + total_return
        annualized_return = (
            growth ** (periods_per_year / n_periods) - 1.0 if growth > 0 else -1.0
        )
        annualized_vol = float(returns.std(ddof=1) * math.sqrt(periods_per_year)) if n_periods > 1 else 0.0
        if not np.isfinite(annualized_vol):
            annualized_vol = 0.0

    return PortfolioMetrics(
        start_value=start_value,
        end_value=end_value,
        total_return=float(total_return),
        annualized_return=float(annualized_return),
        annualized_volatility=float(annualized_vol),
        max_drawdown=max_drawdown(values),
        n_periods=n_periods,
    )
