"""Initial universe selection along a grid of desired maturities."""

from __future__ import annotations

from typing import Sequence

import pandas as pd

from ..config.constants import COLUMN_INSTRUMENT, COLUMN_MATURITY
from ..errors import NoEligibleTargetError
from ..utils.logging_config import get_logger

__all__ = ["maturity_grid", "select_universe"]

logger = get_logger(__name__)


def maturity_grid(
    start: pd.Timestamp,
    *,
    offset_years: int,
    step_months: int,
    points: int,
) -> pd.DatetimeIndex:
    """Desired maturities ``start + offset_years + k * step_months``, k = 1..points.

    With the defaults (7 years, 3 months, 12 points) the grid runs from 7y3m
    to 10y after ``start``.
    """

    if points <= 0 or step_months <= 0:
        raise ValueError("grid needs positive points and step_months")
    base = pd.Timestamp(start) + pd.DateOffset(years=offset_years)
    grid = [base + pd.DateOffset(months=step_months * k) for k in range(1, points + 1)]
    return pd.DatetimeIndex(grid, name=COLUMN_MATURITY)


def select_universe(
    eligible: pd.DataFrame,
    grid: Sequence[pd.Timestamp],
    *,
    on_missing: str = "raise",
    date: pd.Timestamp | None = None,
) -> pd.DataFrame:
    """Pick one eligible instrument per grid point.

    For each grid point ``g`` the selected instrument is the one with the
    greatest maturity strictly before ``g``. Instruments sharing a maturity
    are ordered by id, so the highest id wins the tie. An instrument picked
    by several grid points is kept once.

    Parameters
    ----------
    eligible:
        Eligible observations of a single date (``instrument_id``,
        ``maturity`` and price columns).
    grid:
        Desired maturities in ascending order.
    on_missing:
        ``"raise"`` raises :class:`NoEligibleTargetError` when a grid point
        has no instrument before it; ``"skip"`` drops that grid point.

    Returns
    -------
    pandas.DataFrame
        Selected rows sorted by maturity ascending.
    """

    if on_missing not in {"raise", "skip"}:
        raise ValueError(f"Unsupported on_missing policy '{on_missing}'.")

    ordered = eligible.sort_values([COLUMN_MATURITY, COLUMN_INSTRUMENT]).reset_index(drop=True)
    maturities = ordered[COLUMN_MATURITY]

    picks: list[int] = []
    for point in grid:
        point = pd.Timestamp(point)
        before = maturities.index[maturities < point]
        if len(before) == 0:
            if on_missing == "raise":
                raise NoEligibleTargetError(
                    f"no eligible instrument matures before grid point {point.date()}",
                    date=date,
                )
            logger.warning("Skipping grid point %s: no eligible instrument", point.date())
            continue
        position = int(before[-1])
        if position not in picks:
            picks.append(position)

    if not picks:
        raise NoEligibleTargetError("universe selection produced no instrument", date=date)

    selected = ordered.loc[sorted(picks)]
    return selected.reset_index(drop=True)
