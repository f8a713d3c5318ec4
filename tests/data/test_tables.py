from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from ladder_quant.data.tables import (
    TableSchemaError,
    instruments_from_frame,
    load_cash_flows,
    load_instruments,
    load_prices,
)


def test_load_instruments_maps_aliases_and_indexes_by_id() -> None:
    raw = pd.DataFrame(
        {
            "TreasuryID": [" T2 ", "T1"],
            "Maturity": ["2030-05-15", "2029-02-15"],
            "TreasuryType": ["10-Year NOTE", "30-Year BOND"],
            "CouponRate": [0.025, 0.05],
            "Period": [2, 2],
        }
    )

    instruments = load_instruments(raw)

    assert instruments.index.tolist() == ["T1", "T2"]
    assert instruments.loc["T2", "maturity"] == pd.Timestamp("2030-05-15")
    assert instruments.loc["T1", "instrument_type"] == "30-Year BOND"
    assert instruments.loc["T1", "coupon_rate"] == pytest.approx(0.05)


def test_load_instruments_requires_columns() -> None:
    with pytest.raises(TableSchemaError, match="maturity"):
        load_instruments(pd.DataFrame({"instrument_id": ["A"], "instrument_type": ["NOTE"]}))


def test_load_instruments_rejects_duplicates() -> None:
    raw = pd.DataFrame(
        {
            "instrument_id": ["A", "A"],
            "maturity": ["2030-01-01", "2030-01-01"],
            "instrument_type": ["NOTE", "NOTE"],
        }
    )
    with pytest.raises(TableSchemaError, match="duplicated"):
        load_instruments(raw)


def test_load_prices_sorts_and_normalises(tmp_path: Path) -> None:
    path = tmp_path / "prices.csv"
    pd.DataFrame(
        {
            "Date": ["2021-01-05", "2021-01-04", "2021-01-04"],
            "ID": ["A", "B", "A"],
            "Price": [99.5, 101.0, 99.0],
        }
    ).to_csv(path, index=False)

    prices = load_prices(path)

    assert list(prices.columns) == ["instrument_id", "date", "price"]
    assert prices["instrument_id"].tolist() == ["A", "B", "A"]
    assert prices["date"].tolist() == [
        pd.Timestamp("2021-01-04"),
        pd.Timestamp("2021-01-04"),
        pd.Timestamp("2021-01-05"),
    ]


def test_load_prices_rejects_duplicate_observation() -> None:
    raw = pd.DataFrame(
        {"instrument_id": ["A", "A"], "date": ["2021-01-04"] * 2, "price": [99.0, 99.1]}
    )
    with pytest.raises(TableSchemaError, match="duplicated"):
        load_prices(raw)


def test_load_prices_rejects_non_numeric_price() -> None:
    raw = pd.DataFrame({"instrument_id": ["A"], "date": ["2021-01-04"], "price": ["n/a"]})
    with pytest.raises(TableSchemaError, match="non-numeric"):
        load_prices(raw)


def test_load_prices_rejects_bad_dates() -> None:
    raw = pd.DataFrame({"instrument_id": ["A"], "date": ["not a date"], "price": [99.0]})
    with pytest.raises(TableSchemaError):
        load_prices(raw)


def test_load_prices_empty_table() -> None:
    with pytest.raises(TableSchemaError, match="empty"):
        load_prices(pd.DataFrame(columns=["instrument_id", "date", "price"]))


def test_load_cash_flows_none_is_empty() -> None:
    flows = load_cash_flows(None)
    assert flows.empty
    assert list(flows.columns) == ["instrument_id", "date", "payment"]


def test_load_cash_flows_accepts_coupon_payment_alias() -> None:
    raw = pd.DataFrame(
        {"instrument_id": ["A"], "date": ["2021-02-15"], "CouponPayment": [1.25]}
    )
    flows = load_cash_flows(raw)
    assert flows.loc[0, "payment"] == pytest.approx(1.25)


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_prices(tmp_path / "missing.csv")


def test_instruments_from_frame_builds_reference_objects() -> None:
    frame = load_instruments(
        pd.DataFrame(
            {
                "instrument_id": ["A", "B"],
                "maturity": ["2030-01-01", "2031-01-01"],
                "instrument_type": ["NOTE", "NOTE"],
                "coupon_rate": [0.02, None],
            }
        )
    )

    reference = instruments_from_frame(frame)

    assert reference["A"].coupon_rate == pytest.approx(0.02)
    assert reference["B"].coupon_rate is None
    assert reference["A"].issue_date is None
    assert reference["A"].days_to_maturity(pd.Timestamp("2029-12-31")) == 1
