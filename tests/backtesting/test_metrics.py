from __future__ import annotations

import math

import pandas as pd
import pytest

from ladder_quant.backtesting.metrics import compute_performance_metrics, max_drawdown


def test_metrics_on_growing_series() -> None:
    values = pd.Series([100.0, 101.0, 102.01], index=pd.bdate_range("2021-01-04", periods=3))

    metrics = compute_performance_metrics(values)

    assert metrics.start_value == 100.0
    assert metrics.total_return == pytest.approx(0.0201)
    assert metrics.n_periods == 2
    assert metrics.annualized_return == pytest.approx(1.01**252 - 1.0)
    assert metrics.annualized_volatility == pytest.approx(0.0, abs=1e-12)
    assert metrics.max_drawdown == 0.0
    assert set(metrics.as_dict()) >= {"total_return", "max_drawdown", "n_periods"}


def test_max_drawdown() -> None:
    values = pd.Series([100.0, 120.0, 90.0, 130.0])
    assert max_drawdown(values) == pytest.approx(90.0 / 120.0 - 1.0)
    assert max_drawdown(pd.Series(dtype=float)) == 0.0


def test_metrics_degenerate_inputs() -> None:
    assert compute_performance_metrics(pd.Series(dtype=float)).n_periods == 0

    single = compute_performance_metrics(pd.Series([100.0]))
    assert single.total_return == 0.0
    assert single.annualized_volatility == 0.0


def test_metrics_volatility_is_annualised() -> None:
    values = pd.Series([100.0, 101.0, 100.0, 101.0])
    returns = values.pct_change().dropna()

    metrics = compute_performance_metrics(values, periods_per_year=252)

    assert metrics.annualized_volatility == pytest.approx(returns.std(ddof=1) * math.sqrt(252))
