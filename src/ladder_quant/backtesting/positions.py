"""Append-only position history."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Iterable, Sequence

import pandas as pd

from ..config.constants import COLUMN_DATE, COLUMN_INSTRUMENT
from ..errors import StateError

__all__ = ["POSITION_COLUMNS", "PositionRecord", "PositionHistory"]

POSITION_COLUMNS = [
    COLUMN_DATE,
    COLUMN_INSTRUMENT,
    "price",
    "opening_units",
    "order_units",
    "coupon_payment",
    "transaction_price",
    "closing_units",
    "market_value",
]


@dataclass(frozen=True, slots=True)
class PositionRecord:
    """State of one instrument on one date.

    ``coupon_payment`` is the per-unit payment received that day and
    ``transaction_price`` equals ``price`` unless the instrument traded.
    """

    date: pd.Timestamp
    instrument_id: str
    price: float
    opening_units: int
    order_units: int
    coupon_payment: float
    transaction_price: float

    @property
    def closing_units(self) -> int:
        return self.opening_units + self.order_units

    @property
    def market_value(self) -> float:
        return self.closing_units * self.price

    @property
    def traded(self) -> bool:
        return self.order_units != 0

    def as_dict(self) -> dict[str, object]:
        payload = asdict(self)
        payload["closing_units"] = self.closing_units
        payload["market_value"] = self.market_value
        return payload


class PositionHistory:
    """Position records grouped by date, appended one whole date at a time."""

    def __init__(self) -> None:
        self._days: list[tuple[pd.Timestamp, tuple[PositionRecord, ...]]] = []

    def __len__(self) -> int:
        return sum(len(records) for _, records in self._days)

    @property
    def last_date(self) -> pd.Timestamp | None:
        return self._days[-1][0] if self._days else None

    @property
    def dates(self) -> list[pd.Timestamp]:
        return [date for date, _ in self._days]

    def validate_day(self, date: pd.Timestamp, records: Sequence[PositionRecord]) -> None:
        """Raise :class:`StateError` if ``records`` cannot be appended for ``date``."""

        date = pd.Timestamp(date)
        if self.last_date is not None and date <= self.last_date:
            raise StateError(
                f"positions for {date.date()} must follow {self.last_date.date()}",
                date=date,
            )
        ids = [record.instrument_id for record in records]
        duplicated = sorted({i for i in ids if ids.count(i) > 1})
        if duplicated:
            raise StateError("duplicated position records", date=date, instrument_ids=duplicated)
        foreign = [record.instrument_id for record in records if record.date != date]
        if foreign:
            raise StateError("record dated differently from its day", date=date, instrument_ids=foreign)
        negative = [record.instrument_id for record in records if record.closing_units < 0]
        if negative:
            raise StateError("closing units would be negative", date=date, instrument_ids=negative)

    def append_day(self, date: pd.Timestamp, records: Sequence[PositionRecord]) -> None:
        """Append every record of ``date``; rejects out-of-order or mixed days."""

        self.validate_day(date, records)
        self._days.append((pd.Timestamp(date), tuple(records)))

    def records_on(self, date: pd.Timestamp) -> tuple[PositionRecord, ...]:
        date = pd.Timestamp(date)
        for day, records in self._days:
            if day == date:
                return records
        return ()

    def closing_holdings(self) -> dict[str, int]:
        """Instrument -> closing units (> 0) at the last appended date."""

        if not self._days:
            return {}
        _, records = self._days[-1]
        return {
            record.instrument_id: record.closing_units
            for record in records
            if record.closing_units > 0
        }

    def iter_records(self) -> Iterable[PositionRecord]:
        for _, records in self._days:
            yield from records

    def frame(self) -> pd.DataFrame:
        rows = [record.as_dict() for record in self.iter_records()]
        if not rows:
            return pd.DataFrame(columns=POSITION_COLUMNS)
        frame = pd.DataFrame(rows, columns=POSITION_COLUMNS)
        return frame
