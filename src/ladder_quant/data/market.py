"""Read-only in-memory view over the bond market inputs.

The rebalancing engine consults the market one date at a time: prices of the
held instruments, coupon payments due and the eligible set for a possible
replacement buy. All lookups are side-effect free, so per-date views are
computed once and cached.
"""

from __future__ import annotations

from typing import Iterable

import pandas as pd

from ..config.constants import (
    COLUMN_DATE,
    COLUMN_INSTRUMENT,
    COLUMN_MATURITY,
    COLUMN_PAYMENT,
    COLUMN_PRICE,
    COLUMN_TTM,
)
from ..errors import DataGapError
from ..portfolio.eligibility import attach_reference_data, filter_eligible
from .tables import (
    Instrument,
    TableSchemaError,
    instruments_from_frame,
    load_cash_flows,
    load_instruments,
    load_prices,
)

__all__ = ["BondMarket"]


class BondMarket:
    """Instrument metadata, price history and cash-flow events.

    Parameters
    ----------
    instruments:
        Output of :func:`~ladder_quant.data.tables.load_instruments`.
    prices:
        Output of :func:`~ladder_quant.data.tables.load_prices`.
    cash_flows:
        Output of :func:`~ladder_quant.data.tables.load_cash_flows`; ``None``
        means no coupons.
    """

    def __init__(
        self,
        instruments: pd.DataFrame,
        prices: pd.DataFrame,
        cash_flows: pd.DataFrame | None = None,
    ) -> None:
        unknown = sorted(set(prices[COLUMN_INSTRUMENT]) - set(instruments.index))
        if unknown:
            raise TableSchemaError(
                f"prices reference unknown instrument(s): {', '.join(unknown[:10])}"
            )
        self.instruments = instruments
        self.prices = prices
        self.cash_flows = cash_flows if cash_flows is not None else load_cash_flows(None)
        self._dates = pd.DatetimeIndex(prices[COLUMN_DATE].unique()).sort_values()
        self._reference: dict[str, Instrument] | None = None

        enriched = attach_reference_data(prices, instruments)
        self._by_date = {
            date: group.set_index(COLUMN_INSTRUMENT)
            for date, group in enriched.groupby(COLUMN_DATE, sort=True)
        }
        self._raw_by_date = {
            date: group for date, group in prices.groupby(COLUMN_DATE, sort=True)
        }
        self._payments_by_date = {
            date: group.set_index(COLUMN_INSTRUMENT)[COLUMN_PAYMENT]
            for date, group in self.cash_flows.groupby(COLUMN_DATE, sort=True)
        }
        self._eligible_cache: dict[tuple, pd.DataFrame] = {}

    @classmethod
    def from_sources(
        cls,
        instruments: str | pd.DataFrame,
        prices: str | pd.DataFrame,
        cash_flows: str | pd.DataFrame | None = None,
    ) -> "BondMarket":
        """Load and normalise the three tables from paths or raw frames."""
        return cls(
            load_instruments(instruments),
            load_prices(prices),
            load_cash_flows(cash_flows),
        )

    # ------------------------------------------------------------------ dates
    @property
    def dates(self) -> pd.DatetimeIndex:
        return self._dates

    def trading_dates(
        self, start: pd.Timestamp | None = None, n_dates: int | None = None
    ) -> pd.DatetimeIndex:
        """Trading dates on or after ``start``, optionally truncated to ``n_dates``."""

        dates = self._dates
        if start is not None:
            dates = dates[dates >= pd.Timestamp(start).normalize()]
        if n_dates is not None:
            dates = dates[:n_dates]
        return dates

    # ----------------------------------------------------------------- lookups
    @property
    def reference(self) -> dict[str, Instrument]:
        if self._reference is None:
            self._reference = instruments_from_frame(self.instruments)
        return self._reference

    def snapshot(self, date: pd.Timestamp) -> pd.DataFrame:
        """Every observation on ``date`` indexed by instrument id."""

        date = pd.Timestamp(date)
        if date not in self._by_date:
            return pd.DataFrame(
                columns=[COLUMN_DATE, COLUMN_PRICE, COLUMN_MATURITY, COLUMN_TTM]
            )
        return self._by_date[date]

    def prices_for(self, date: pd.Timestamp, instrument_ids: Iterable[str]) -> pd.DataFrame:
        """Price, maturity and ``ttm_days`` for ``instrument_ids`` on ``date``.

        Raises
        ------
        DataGapError
            When any requested instrument has no observation on ``date``.
        """

        ids = list(instrument_ids)
        snapshot = self.snapshot(date)
        missing = [i for i in ids if i not in snapshot.index]
        if missing:
            raise DataGapError(
                "held instrument has no price", date=date, instrument_ids=missing
            )
        return snapshot.loc[ids, [COLUMN_PRICE, COLUMN_MATURITY, COLUMN_TTM]]

    def coupon_payments(self, date: pd.Timestamp, instrument_ids: Iterable[str]) -> pd.Series:
        """Per-unit payment due on ``date``; instruments without an event get 0."""

        ids = list(instrument_ids)
        payments = self._payments_by_date.get(pd.Timestamp(date))
        if payments is None:
            return pd.Series(0.0, index=pd.Index(ids, name=COLUMN_INSTRUMENT), name=COLUMN_PAYMENT)
        return payments.reindex(ids).fillna(0.0).astype(float).rename(COLUMN_PAYMENT)

    def eligible_on(
        self,
        date: pd.Timestamp,
        *,
        min_days: int,
        max_days: int,
        excluded_types: Iterable[str] = (),
    ) -> pd.DataFrame:
        """Eligible observations on ``date`` sorted by maturity then id."""

        date = pd.Timestamp(date)
        excluded = tuple(sorted(excluded_types))
        key = (date, min_days, max_days, excluded)
        cached = self._eligible_cache.get(key)
        if cached is not None:
            return cached

        raw = self._raw_by_date.get(date)
        if raw is None:
            eligible = filter_eligible(
                self.prices.iloc[0:0],
                self.instruments,
                min_days=min_days,
                max_days=max_days,
                excluded_types=excluded,
            )
        else:
            eligible = filter_eligible(
                raw,
                self.instruments,
                min_days=min_days,
                max_days=max_days,
                excluded_types=excluded,
            )
        self._eligible_cache[key] = eligible
        return eligible

    def eligible_counts(
        self,
        *,
        min_days: int,
        max_days: int,
        excluded_types: Iterable[str] = (),
    ) -> pd.Series:
        """Number of eligible instruments per trading date."""

        eligible = filter_eligible(
            self.prices,
            self.instruments,
            min_days=min_days,
            max_days=max_days,
            excluded_types=excluded_types,
        )
        counts = eligible.groupby(COLUMN_DATE)[COLUMN_INSTRUMENT].nunique()
        counts = counts.reindex(self._dates, fill_value=0).astype(int)
        counts.index.name = COLUMN_DATE
        counts.name = "n_eligible"
        return counts
