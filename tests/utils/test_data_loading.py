from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from ladder_quant.utils.data_loading import read_table


def test_read_table_csv_keeps_columns(tmp_path: Path) -> None:
    path = tmp_path / "prices.csv"
    pd.DataFrame({"instrument_id": ["A"], "date": ["2021-01-04"], "price": [99.5]}).to_csv(
        path, index=False
    )

    frame = read_table(path)

    assert frame.columns.tolist() == ["instrument_id", "date", "price"]
    assert frame.loc[0, "price"] == pytest.approx(99.5)


def test_read_table_pickle(tmp_path: Path) -> None:
    path = tmp_path / "flows.pkl"
    original = pd.DataFrame({"instrument_id": ["B"], "payment": [1.5]})
    original.to_pickle(path)

    pd.testing.assert_frame_equal(read_table(path), original)


def test_read_table_unsupported_suffix(tmp_path: Path) -> None:
    path = tmp_path / "prices.txt"
    path.write_text("x", encoding="utf-8")
    with pytest.raises(ValueError, match="Unsupported data format"):
        read_table(path)


def test_read_table_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Data file not found"):
        read_table(tmp_path / "missing.csv")
