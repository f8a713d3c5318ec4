"""Cash bookkeeping used by the rebalancing engine."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping

import pandas as pd

from ..config.constants import CASH_TOLERANCE, COLUMN_DATE
from ..errors import LedgerConsistencyError

__all__ = ["LEDGER_COLUMNS", "LedgerEntry", "CashLedger"]

LEDGER_COLUMNS = [COLUMN_DATE, "opening_cash", "coupons", "transactions", "closing_cash"]


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """One date of cash bookkeeping."""

    date: pd.Timestamp
    opening_cash: float
    coupons: float
    transactions: float

    @property
    def closing_cash(self) -> float:
        return self.opening_cash + self.coupons + self.transactions

    def as_dict(self) -> dict[str, object]:
        return {
            COLUMN_DATE: self.date,
            "opening_cash": self.opening_cash,
            "coupons": self.coupons,
            "transactions": self.transactions,
            "closing_cash": self.closing_cash,
        }


class CashLedger:
    """Append-only cash account, one entry per simulated date.

    The first entry opens with ``initial_wealth``; every later entry opens
    with the closing cash of its predecessor. Dates must strictly increase.
    """

    def __init__(self, initial_wealth: float) -> None:
        initial_wealth = float(initial_wealth)
        if not math.isfinite(initial_wealth) or initial_wealth <= 0:
            raise ValueError("initial_wealth must be a positive finite amount")
        self.initial_wealth = initial_wealth
        self._entries: list[LedgerEntry] = []
        self._index: dict[pd.Timestamp, int] = {}

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[LedgerEntry, ...]:
        return tuple(self._entries)

    @property
    def last_date(self) -> pd.Timestamp | None:
        return self._entries[-1].date if self._entries else None

    def opening_cash(self, date: pd.Timestamp) -> float:
        """Opening cash of ``date``.

        For a recorded date this is the stored value; for the next date to be
        recorded it is the latest closing cash (or the initial wealth).
        """

        date = pd.Timestamp(date)
        if date in self._index:
            return self._entries[self._index[date]].opening_cash
        if self.last_date is not None and date < self.last_date:
            raise LedgerConsistencyError("date precedes the ledger and was never recorded", date=date)
        if not self._entries:
            return self.initial_wealth
        return self._entries[-1].closing_cash

    def closing_cash(self, date: pd.Timestamp) -> float:
        date = pd.Timestamp(date)
        if date not in self._index:
            raise LedgerConsistencyError("no ledger entry for date", date=date)
        return self._entries[self._index[date]].closing_cash

    def record(
        self,
        date: pd.Timestamp,
        coupons: float,
        transactions: float,
        *,
        opening_cash: float | None = None,
    ) -> LedgerEntry:
        """Append the entry for ``date``.

        ``opening_cash``, when given, is the value the caller based its
        decisions on; a mismatch with the ledger chain is an engine bug.

        Raises
        ------
        LedgerConsistencyError
            Duplicate or out-of-order date, non-finite amounts or an opening
            cash that breaks the chain.
        """

        date = pd.Timestamp(date)
        if date in self._index:
            raise LedgerConsistencyError("ledger already has an entry for date", date=date)
        if self.last_date is not None and date < self.last_date:
            raise LedgerConsistencyError(
                f"ledger date must follow {self.last_date.date()}", date=date
            )
        coupons = float(coupons)
        transactions = float(transactions)
        if not (math.isfinite(coupons) and math.isfinite(transactions)):
            raise LedgerConsistencyError(
                f"non-finite ledger amounts coupons={coupons} transactions={transactions}",
                date=date,
            )

        expected = self.opening_cash(date)
        if opening_cash is not None and abs(float(opening_cash) - expected) > CASH_TOLERANCE:
            raise LedgerConsistencyError(
                f"opening cash {opening_cash} does not match ledger chain {expected}",
                date=date,
            )

        entry = LedgerEntry(
            date=date, opening_cash=expected, coupons=coupons, transactions=transactions
        )
        self._index[date] = len(self._entries)
        self._entries.append(entry)
        return entry

    def frame(self) -> pd.DataFrame:
        if not self._entries:
            return pd.DataFrame(columns=LEDGER_COLUMNS).set_index(COLUMN_DATE)
        frame = pd.DataFrame([entry.as_dict() for entry in self._entries], columns=LEDGER_COLUMNS)
        return frame.set_index(COLUMN_DATE)

    def as_dict(self) -> Mapping[str, list[float]]:
        frame = self.frame()
        return {column: frame[column].tolist() for column in frame.columns}
