"""Eligibility filter for the ladder universe.

An observation is eligible when the instrument's remaining time to maturity
on the observation date lies inside the inclusive band ``[min_days,
max_days]`` and its type tag is not excluded. Eligibility depends on the
observation date, so an instrument enters and later leaves the eligible set
over its life.
"""

from __future__ import annotations

from typing import Iterable

import pandas as pd

from ..config.constants import (
    COLUMN_DATE,
    COLUMN_INSTRUMENT,
    COLUMN_INSTRUMENT_TYPE,
    COLUMN_MATURITY,
    COLUMN_PRICE,
    COLUMN_TTM,
)

__all__ = ["attach_reference_data", "filter_eligible"]


def attach_reference_data(prices: pd.DataFrame, instruments: pd.DataFrame) -> pd.DataFrame:
    """Join maturity/type onto price rows and compute ``ttm_days``.

    ``instruments`` is indexed by instrument id, as returned by
    :func:`ladder_quant.data.tables.load_instruments`. Rows whose instrument is
    unknown are dropped.
    """

    reference = (
        instruments[[COLUMN_MATURITY, COLUMN_INSTRUMENT_TYPE]]
        .rename_axis(COLUMN_INSTRUMENT)
        .reset_index()
    )
    joined = prices.merge(reference, on=COLUMN_INSTRUMENT, how="inner")
    joined[COLUMN_TTM] = (joined[COLUMN_MATURITY] - joined[COLUMN_DATE]).dt.days
    return joined


def filter_eligible(
    prices: pd.DataFrame,
    instruments: pd.DataFrame,
    *,
    min_days: int,
    max_days: int,
    excluded_types: Iterable[str] = (),
) -> pd.DataFrame:
    """Return the eligible subset of ``prices``.

    Parameters
    ----------
    prices:
        Long table with ``instrument_id``, ``date`` and ``price``; may span one
        or many observation dates.
    instruments:
        Instrument metadata indexed by ``instrument_id``.
    min_days, max_days:
        Inclusive remaining-maturity band in calendar days.
    excluded_types:
        Type tags that are never eligible (e.g. ``"30-Year BOND"``).

    Returns
    -------
    pandas.DataFrame
        Columns ``instrument_id, date, price, maturity, instrument_type,
        ttm_days`` sorted by date then maturity.
    """

    if min_days > max_days:
        raise ValueError("min_days must not exceed max_days")

    joined = attach_reference_data(prices, instruments)
    excluded = set(excluded_types)
    mask = joined[COLUMN_TTM].between(min_days, max_days, inclusive="both")
    if excluded:
        mask &= ~joined[COLUMN_INSTRUMENT_TYPE].isin(excluded)

    columns = [
        COLUMN_INSTRUMENT,
        COLUMN_DATE,
        COLUMN_PRICE,
        COLUMN_MATURITY,
        COLUMN_INSTRUMENT_TYPE,
        COLUMN_TTM,
    ]
    eligible = joined.loc[mask, columns]
    return eligible.sort_values([COLUMN_DATE, COLUMN_MATURITY, COLUMN_INSTRUMENT]).reset_index(
        drop=True
    )
