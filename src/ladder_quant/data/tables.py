"""Ingestion of the externally prepared input tables.

`TableSchemaError`
    Raised when a table misses required columns, has unparsable dates or
    prices, or carries duplicated keys.

`load_instruments(source)`
    Instrument metadata: one row per ``instrument_id`` with ``maturity`` and
    ``instrument_type`` (plus optional issue date and coupon terms).

`load_prices(source)`
    Long price table: one row per ``(instrument_id, date)``.

`load_cash_flows(source)`
    Sparse cash-flow events: one ``payment`` per ``(instrument_id, date)``.

Every loader accepts a path (CSV, parquet, pickle, feather) or an already
materialised ``DataFrame``. Column names are lower-cased and a few common
aliases (``TreasuryID``, ``Date``, ``TreasuryType``...) are mapped to the
canonical names in :mod:`ladder_quant.config.constants`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping

import numpy as np
import pandas as pd

from ..config.constants import (
    COLUMN_BASIS,
    COLUMN_COUPON_PERIOD,
    COLUMN_COUPON_RATE,
    COLUMN_DATE,
    COLUMN_INSTRUMENT,
    COLUMN_INSTRUMENT_TYPE,
    COLUMN_ISSUE_DATE,
    COLUMN_MATURITY,
    COLUMN_PAYMENT,
    COLUMN_PRICE,
)
from ..utils.data_loading import read_table

__all__ = [
    "Instrument",
    "TableSchemaError",
    "instruments_from_frame",
    "load_cash_flows",
    "load_instruments",
    "load_prices",
]

TableSource = str | Path | pd.DataFrame

COLUMN_ALIASES: Mapping[str, str] = {
    "treasuryid": COLUMN_INSTRUMENT,
    "id": COLUMN_INSTRUMENT,
    "treasurytype": COLUMN_INSTRUMENT_TYPE,
    "type": COLUMN_INSTRUMENT_TYPE,
    "auctiondate": COLUMN_ISSUE_DATE,
    "couponrate": COLUMN_COUPON_RATE,
    "couponpayment": COLUMN_PAYMENT,
    "period": COLUMN_COUPON_PERIOD,
}


class TableSchemaError(ValueError):
    """Raise when an input table does not match the expected schema."""


@dataclass(frozen=True, slots=True)
class Instrument:
    """Immutable bond reference data."""

    instrument_id: str
    maturity: pd.Timestamp
    instrument_type: str
    issue_date: pd.Timestamp | None = None
    coupon_rate: float | None = None
    coupon_period: int | None = None
    basis: int | None = None

    def days_to_maturity(self, date: pd.Timestamp) -> int:
        return int((self.maturity - pd.Timestamp(date)).days)


def _read(source: TableSource, *, name: str) -> pd.DataFrame:
    if isinstance(source, pd.DataFrame):
        frame = source.copy()
    else:
        frame = read_table(source)
    if frame.empty:
        raise TableSchemaError(f"{name} table is empty")
    renamed = {}
    for column in frame.columns:
        key = str(column).strip().lower()
        renamed[column] = COLUMN_ALIASES.get(key, key)
    return frame.rename(columns=renamed)


def _require(frame: pd.DataFrame, columns: Iterable[str], *, name: str) -> None:
    missing = [col for col in columns if col not in frame.columns]
    if missing:
        raise TableSchemaError(
            f"{name} table is missing column(s): {', '.join(sorted(missing))}"
        )


def _to_dates(frame: pd.DataFrame, column: str, *, name: str) -> pd.Series:
    try:
        parsed = pd.to_datetime(frame[column])
    except (pd.errors.OutOfBoundsDatetime, ValueError, TypeError) as exc:
        raise TableSchemaError(f"{name}: cannot parse '{column}' as dates: {exc}") from exc
    if parsed.isna().any():
        raise TableSchemaError(f"{name}: '{column}' contains missing dates")
    return parsed.dt.normalize()


def _to_numeric(frame: pd.DataFrame, column: str, *, name: str) -> pd.Series:
    values = pd.to_numeric(frame[column], errors="coerce").astype(float)
    bad = ~np.isfinite(values.to_numpy())
    if bad.any():
        rows = frame.index[bad].tolist()[:5]
        raise TableSchemaError(f"{name}: non-numeric '{column}' values at rows {rows}")
    return values


def _reject_duplicates(frame: pd.DataFrame, keys: list[str], *, name: str) -> None:
    duplicated = frame.duplicated(subset=keys, keep=False)
    if duplicated.any():
        sample = frame.loc[duplicated, keys].head(3).to_dict(orient="records")
        raise TableSchemaError(f"{name}: duplicated keys {keys}: {sample}")


def load_instruments(source: TableSource) -> pd.DataFrame:
    """Load instrument metadata indexed by ``instrument_id``."""

    frame = _read(source, name="instruments")
    _require(frame, [COLUMN_INSTRUMENT, COLUMN_MATURITY, COLUMN_INSTRUMENT_TYPE], name="instruments")

    frame[COLUMN_INSTRUMENT] = frame[COLUMN_INSTRUMENT].astype(str).str.strip()
    frame[COLUMN_MATURITY] = _to_dates(frame, COLUMN_MATURITY, name="instruments")
    frame[COLUMN_INSTRUMENT_TYPE] = frame[COLUMN_INSTRUMENT_TYPE].astype(str).str.strip()
    if COLUMN_ISSUE_DATE in frame.columns:
        frame[COLUMN_ISSUE_DATE] = pd.to_datetime(frame[COLUMN_ISSUE_DATE], errors="coerce")
    for column in (COLUMN_COUPON_RATE, COLUMN_COUPON_PERIOD, COLUMN_BASIS):
        if column in frame.columns:
            frame[column] = pd.to_numeric(frame[column], errors="coerce")

    _reject_duplicates(frame, [COLUMN_INSTRUMENT], name="instruments")
    return frame.set_index(COLUMN_INSTRUMENT).sort_index()


def load_prices(source: TableSource) -> pd.DataFrame:
    """Load the long price table sorted by date then instrument."""

    frame = _read(source, name="prices")
    _require(frame, [COLUMN_INSTRUMENT, COLUMN_DATE, COLUMN_PRICE], name="prices")

    out = pd.DataFrame(
        {
            COLUMN_INSTRUMENT: frame[COLUMN_INSTRUMENT].astype(str).str.strip(),
            COLUMN_DATE: _to_dates(frame, COLUMN_DATE, name="prices"),
            COLUMN_PRICE: _to_numeric(frame, COLUMN_PRICE, name="prices"),
        }
    )
    _reject_duplicates(out, [COLUMN_INSTRUMENT, COLUMN_DATE], name="prices")
    return out.sort_values([COLUMN_DATE, COLUMN_INSTRUMENT]).reset_index(drop=True)


def load_cash_flows(source: TableSource | None) -> pd.DataFrame:
    """Load cash-flow events; ``None`` yields an empty table."""

    if source is None:
        return pd.DataFrame(
            {
                COLUMN_INSTRUMENT: pd.Series(dtype=str),
                COLUMN_DATE: pd.Series(dtype="datetime64[ns]"),
                COLUMN_PAYMENT: pd.Series(dtype=float),
            }
        )

    frame = _read(source, name="cash_flows")
    _require(frame, [COLUMN_INSTRUMENT, COLUMN_DATE, COLUMN_PAYMENT], name="cash_flows")

    out = pd.DataFrame(
        {
            COLUMN_INSTRUMENT: frame[COLUMN_INSTRUMENT].astype(str).str.strip(),
            COLUMN_DATE: _to_dates(frame, COLUMN_DATE, name="cash_flows"),
            COLUMN_PAYMENT: _to_numeric(frame, COLUMN_PAYMENT, name="cash_flows"),
        }
    )
    _reject_duplicates(out, [COLUMN_INSTRUMENT, COLUMN_DATE], name="cash_flows")
    return out.sort_values([COLUMN_DATE, COLUMN_INSTRUMENT]).reset_index(drop=True)


def _optional(value: object, cast: type) -> object:
    if value is None or pd.isna(value):
        return None
    return cast(value)


def instruments_from_frame(frame: pd.DataFrame) -> dict[str, Instrument]:
    """Build :class:`Instrument` objects from :func:`load_instruments` output."""

    instruments: dict[str, Instrument] = {}
    for instrument_id, row in frame.iterrows():
        instruments[str(instrument_id)] = Instrument(
            instrument_id=str(instrument_id),
            maturity=pd.Timestamp(row[COLUMN_MATURITY]),
            instrument_type=str(row[COLUMN_INSTRUMENT_TYPE]),
            issue_date=_optional(row.get(COLUMN_ISSUE_DATE), pd.Timestamp),
            coupon_rate=_optional(row.get(COLUMN_COUPON_RATE), float),
            coupon_period=_optional(row.get(COLUMN_COUPON_PERIOD), int),
            basis=_optional(row.get(COLUMN_BASIS), int),
        )
    return instruments
