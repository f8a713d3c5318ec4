"""Backtesting subpackage exports."""

from .bookkeeping import CashLedger, LedgerEntry
from .engine import (
    BacktestResult,
    DayPlan,
    RebalancingEngine,
    SimulationResult,
    TradeRecord,
    run_ladder_backtest,
)
from .metrics import PortfolioMetrics, compute_performance_metrics
from .positions import PositionHistory, PositionRecord
from .valuation import value_portfolio

__all__ = [
    "BacktestResult",
    "CashLedger",
    "DayPlan",
    "LedgerEntry",
    "PortfolioMetrics",
    "PositionHistory",
    "PositionRecord",
    "RebalancingEngine",
    "SimulationResult",
    "TradeRecord",
    "compute_performance_metrics",
    "run_ladder_backtest",
    "value_portfolio",
]
