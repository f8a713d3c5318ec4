"""Portfolio valuation from position and ledger histories."""

from __future__ import annotations

import numpy as np
import pandas as pd

from ..config.constants import CASH_TOLERANCE, COLUMN_DATE

__all__ = ["VALUE_COLUMNS", "value_portfolio", "check_decomposition"]

VALUE_COLUMNS = ["market_value", "cash", "total_value"]


def value_portfolio(positions: pd.DataFrame, ledger: pd.DataFrame) -> pd.DataFrame:
    """Combine end-of-day market values with ledger cash.

    Parameters
    ----------
    positions:
        Position records with ``date``, ``closing_units`` and ``price``.
    ledger:
        Ledger frame indexed by date with ``closing_cash``.

    Returns
    -------
    pandas.DataFrame
        Indexed by every ledger date with ``market_value``, ``cash`` and
        ``total_value = market_value + cash``. Dates without positions are
        valued at cash only.
    """

    dates = pd.DatetimeIndex(ledger.index, name=COLUMN_DATE)
    if positions.empty:
        market_value = pd.Series(0.0, index=dates)
    else:
        values = positions["closing_units"].astype(float) * positions["price"].astype(float)
        market_value = values.groupby(pd.DatetimeIndex(positions[COLUMN_DATE])).sum()
        market_value = market_value.reindex(dates, fill_value=0.0)

    cash = ledger["closing_cash"].astype(float).reindex(dates)
    frame = pd.DataFrame(
        {
            "market_value": market_value.astype(float).to_numpy(),
            "cash": cash.to_numpy(),
        },
        index=dates,
    )
    frame["total_value"] = frame["market_value"] + frame["cash"]
    return frame


def check_decomposition(
    values: pd.DataFrame,
    positions: pd.DataFrame,
    ledger: pd.DataFrame,
    *,
    atol: float = CASH_TOLERANCE,
) -> bool:
    """Return ``True`` when ``total_value`` equals positions plus closing cash."""

    expected = value_portfolio(positions, ledger)["total_value"]
    actual = values["total_value"].reindex(expected.index)
    return bool(np.allclose(actual.to_numpy(), expected.to_numpy(), atol=atol, rtol=0.0))
