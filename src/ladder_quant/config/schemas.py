"""Pydantic schemas for configuration validation.

This module defines typed configuration schemas using Pydantic v2 for:
- Input table locations (instrument metadata, prices, cash flows)
- Ladder strategy parameters (band, grid, costs, trigger)
- The complete backtest configuration file

All YAML configuration files in configs/ should validate against
:class:`LadderBacktestConfig`.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Literal

import pandas as pd
from pydantic import BaseModel, Field, field_validator, model_validator

from .constants import (
    DEFAULT_BASE_CURRENCY,
    DEFAULT_EXCLUDED_TYPES,
    DEFAULT_GRACE_DAYS,
    DEFAULT_GRID_OFFSET_YEARS,
    DEFAULT_GRID_POINTS,
    DEFAULT_GRID_STEP_MONTHS,
    DEFAULT_INITIAL_WEALTH,
    DEFAULT_MAX_DAYS,
    DEFAULT_MIN_DAYS,
    DEFAULT_TRANSACTION_COST,
)
from .params_default import StrategyParams

__all__ = [
    "DataSourcesConfig",
    "StrategyConfig",
    "LadderBacktestConfig",
]


class DataSourcesConfig(BaseModel):
    """Locations of the externally prepared input tables.

    Attributes
    ----------
    instruments : Path
        Instrument metadata table (id, issue date, maturity, coupon terms, type)
    prices : Path
        Long price table (instrument id, date, price)
    cash_flows : Path, optional
        Cash-flow event table (instrument id, date, payment). When omitted no
        coupons are paid.
    """

    instruments: Path = Field(description="Instrument metadata table")
    prices: Path = Field(description="Price observations table")
    cash_flows: Path | None = Field(default=None, description="Cash-flow events table")

    def resolve(self, base: Path) -> "DataSourcesConfig":
        """Return a copy with relative paths anchored at ``base``."""

        def _anchor(path: Path | None) -> Path | None:
            if path is None or path.is_absolute():
                return path
            return (base / path).resolve()

        return DataSourcesConfig(
            instruments=_anchor(self.instruments),
            prices=_anchor(self.prices),
            cash_flows=_anchor(self.cash_flows),
        )


class StrategyConfig(BaseModel):
    """Bond ladder strategy parameters.

    Attributes
    ----------
    initial_wealth : float
        Cash available on the first simulated date
    start_date : date, optional
        First date to simulate; rolled forward to the next trading date
    min_days, max_days : int
        Eligible remaining-maturity band in calendar days (inclusive)
    excluded_types : list of str
        Instrument type tags never eligible
    grid_offset_years, grid_step_months, grid_points : int
        Desired-maturity grid ``start + offset + k * step`` for k = 1..points
    transaction_cost : float
        Fixed cost per traded unit
    grace_days : int
        Days below ``min_days`` at which a held instrument is sold
    n_dates : int, optional
        Number of dates to simulate; all available dates when omitted
    on_missing_grid_point : {"raise", "skip"}
        Policy when a grid point has no eligible instrument before it
    """

    initial_wealth: float = Field(default=DEFAULT_INITIAL_WEALTH, gt=0)
    start_date: date | None = None
    min_days: int = Field(default=DEFAULT_MIN_DAYS, ge=0)
    max_days: int = Field(default=DEFAULT_MAX_DAYS, gt=0)
    excluded_types: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDED_TYPES))
    grid_offset_years: int = Field(default=DEFAULT_GRID_OFFSET_YEARS, ge=0)
    grid_step_months: int = Field(default=DEFAULT_GRID_STEP_MONTHS, gt=0)
    grid_points: int = Field(default=DEFAULT_GRID_POINTS, gt=0)
    transaction_cost: float = Field(default=DEFAULT_TRANSACTION_COST, ge=0)
    grace_days: int = Field(default=DEFAULT_GRACE_DAYS, ge=0)
    n_dates: int | None = Field(default=None, gt=0)
    on_missing_grid_point: Literal["raise", "skip"] = "raise"

    @field_validator("excluded_types")
    @classmethod
    def strip_types(cls, v: list[str]) -> list[str]:
        """Remove surrounding whitespace from type tags."""
        return [tag.strip() for tag in v]

    @model_validator(mode="after")
    def check_band(self) -> "StrategyConfig":
        if self.min_days >= self.max_days:
            raise ValueError(
                f"min_days ({self.min_days}) must be below max_days ({self.max_days})"
            )
        return self

    def to_params(self) -> StrategyParams:
        return StrategyParams(
            initial_wealth=float(self.initial_wealth),
            start_date=None if self.start_date is None else pd.Timestamp(self.start_date),
            min_days=self.min_days,
            max_days=self.max_days,
            excluded_types=tuple(self.excluded_types),
            grid_offset_years=self.grid_offset_years,
            grid_step_months=self.grid_step_months,
            grid_points=self.grid_points,
            transaction_cost=float(self.transaction_cost),
            grace_days=self.grace_days,
            n_dates=self.n_dates,
            on_missing_grid_point=self.on_missing_grid_point,
        )


class LadderBacktestConfig(BaseModel):
    """Complete backtest configuration file.

    Attributes
    ----------
    name : str
        Run label used in logs and reports
    base_currency : str
        Currency label for reporting
    data : DataSourcesConfig
        Input tables
    strategy : StrategyConfig
        Strategy parameters
    output_dir : Path, optional
        Where ``export_results`` writes CSV/JSON outputs; relative to the YAML file
    """

    name: str = Field(default="ladder", description="Run label")
    base_currency: str = Field(default=DEFAULT_BASE_CURRENCY, min_length=3, max_length=3)
    data: DataSourcesConfig
    strategy: StrategyConfig = Field(default_factory=StrategyConfig)
    output_dir: Path | None = None

    @field_validator("base_currency")
    @classmethod
    def uppercase_currency(cls, v: str) -> str:
        return v.upper()
