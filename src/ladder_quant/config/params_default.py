"""Parâmetros padrão da estratégia de *bond ladder*.

O módulo centraliza os *defaults* da simulação (riqueza inicial, banda de
vencimentos, grade de maturidades desejadas, custos), evitando a duplicação
dos mesmos números mágicos em testes, CLI e motor. Os valores podem ser
sobrescritos via ``merge_params``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

import pandas as pd

from .constants import (
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

__all__ = [
    "MISSING_GRID_POLICIES",
    "StrategyParams",
    "DEFAULT_PARAMS",
    "default_params",
    "merge_params",
]

MISSING_GRID_POLICIES = ("raise", "skip")


@dataclass(frozen=True, slots=True)
class StrategyParams:
    """Immutable simulation configuration.

    ``start_date=None`` starts on the first date of the price history and
    ``n_dates=None`` simulates every available date from there on.
    """

    initial_wealth: float = DEFAULT_INITIAL_WEALTH
    start_date: pd.Timestamp | None = None
    min_days: int = DEFAULT_MIN_DAYS
    max_days: int = DEFAULT_MAX_DAYS
    excluded_types: tuple[str, ...] = DEFAULT_EXCLUDED_TYPES
    grid_offset_years: int = DEFAULT_GRID_OFFSET_YEARS
    grid_step_months: int = DEFAULT_GRID_STEP_MONTHS
    grid_points: int = DEFAULT_GRID_POINTS
    transaction_cost: float = DEFAULT_TRANSACTION_COST
    grace_days: int = DEFAULT_GRACE_DAYS
    n_dates: int | None = None
    on_missing_grid_point: str = "raise"

    def __post_init__(self) -> None:
        if self.start_date is not None and not isinstance(self.start_date, pd.Timestamp):
            object.__setattr__(self, "start_date", pd.Timestamp(self.start_date))
        object.__setattr__(self, "excluded_types", tuple(self.excluded_types))

        if not math.isfinite(self.initial_wealth) or self.initial_wealth <= 0:
            raise ValueError("initial_wealth must be a positive finite amount")
        if self.min_days < 0 or self.min_days >= self.max_days:
            raise ValueError("maturity band requires 0 <= min_days < max_days")
        if not math.isfinite(self.transaction_cost) or self.transaction_cost < 0:
            raise ValueError("transaction_cost must be non-negative")
        if self.grace_days < 0:
            raise ValueError("grace_days must be non-negative")
        if self.n_dates is not None and self.n_dates <= 0:
            raise ValueError("n_dates must be positive when provided")
        if self.grid_points <= 0 or self.grid_step_months <= 0:
            raise ValueError("maturity grid needs positive points and step")
        if self.on_missing_grid_point not in MISSING_GRID_POLICIES:
            raise ValueError(
                f"on_missing_grid_point must be one of {MISSING_GRID_POLICIES}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "initial_wealth": self.initial_wealth,
            "start_date": self.start_date,
            "min_days": self.min_days,
            "max_days": self.max_days,
            "excluded_types": self.excluded_types,
            "grid_offset_years": self.grid_offset_years,
            "grid_step_months": self.grid_step_months,
            "grid_points": self.grid_points,
            "transaction_cost": self.transaction_cost,
            "grace_days": self.grace_days,
            "n_dates": self.n_dates,
            "on_missing_grid_point": self.on_missing_grid_point,
        }


DEFAULT_PARAMS = StrategyParams()


def default_params() -> StrategyParams:
    """Return a copy of the default parameters."""

    return StrategyParams(**DEFAULT_PARAMS.to_dict())


def merge_params(
    overrides: Mapping[str, Any] | None = None,
    *,
    base: StrategyParams | None = None,
) -> StrategyParams:
    """Merge ``overrides`` with ``base`` returning a new :class:`StrategyParams`.

    Parameters
    ----------
    overrides:
        Valores a substituir. Chaves desconhecidas geram ``KeyError`` para
        evitar erros silenciosos.
    base:
        Instância de referência; quando ``None`` usa :data:`DEFAULT_PARAMS`.
    """

    base_params = base or DEFAULT_PARAMS
    data = base_params.to_dict()

    if not overrides:
        return StrategyParams(**data)

    unknown = sorted(set(overrides) - set(data))
    if unknown:
        raise KeyError(f"Unknown parameter(s): {', '.join(unknown)}")

    data.update(overrides)
    return StrategyParams(**data)
