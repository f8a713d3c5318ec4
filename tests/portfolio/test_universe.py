from __future__ import annotations

import logging

import pandas as pd
import pytest

from ladder_quant.errors import NoEligibleTargetError
from ladder_quant.portfolio.universe import maturity_grid, select_universe


def _eligible(rows: list[tuple[str, str]]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "instrument_id": [i for i, _ in rows],
            "maturity": pd.to_datetime([m for _, m in rows]),
            "price": [100.0] * len(rows),
        }
    )


def test_maturity_grid_default_spacing() -> None:
    grid = maturity_grid(pd.Timestamp("2020-01-02"), offset_years=7, step_months=3, points=12)

    assert len(grid) == 12
    assert grid[0] == pd.Timestamp("2027-04-02")
    assert grid[-1] == pd.Timestamp("2030-01-02")


def test_maturity_grid_rejects_empty() -> None:
    with pytest.raises(ValueError):
        maturity_grid(pd.Timestamp("2020-01-02"), offset_years=7, step_months=3, points=0)


def test_select_universe_takes_last_instrument_before_each_point() -> None:
    eligible = _eligible(
        [("D", "2021-09-01"), ("A", "2021-02-01"), ("B", "2021-03-15"), ("C", "2021-06-30")]
    )
    grid = pd.to_datetime(["2021-04-01", "2021-07-01", "2021-10-01"])

    selected = select_universe(eligible, grid)

    assert selected["instrument_id"].tolist() == ["B", "C", "D"]


def test_select_universe_requires_strictly_earlier_maturity() -> None:
    eligible = _eligible([("A", "2021-03-01"), ("B", "2021-04-01")])

    selected = select_universe(eligible, pd.to_datetime(["2021-04-01"]))

    assert selected["instrument_id"].tolist() == ["A"]


def test_select_universe_same_maturity_ties_resolve_by_id() -> None:
    eligible = _eligible([("Z", "2021-03-01"), ("M", "2021-03-01")])

    selected = select_universe(eligible, pd.to_datetime(["2021-04-01"]))

    assert selected["instrument_id"].tolist() == ["Z"]


def test_select_universe_deduplicates_repeated_picks() -> None:
    eligible = _eligible([("A", "2021-03-01"), ("B", "2021-09-01")])
    grid = pd.to_datetime(["2021-04-01", "2021-05-01", "2021-10-01"])

    selected = select_universe(eligible, grid)

    assert selected["instrument_id"].tolist() == ["A", "B"]


def test_select_universe_missing_grid_point_raises() -> None:
    eligible = _eligible([("A", "2021-06-01")])

    with pytest.raises(NoEligibleTargetError, match="grid point 2021-04-01") as excinfo:
        select_universe(
            eligible,
            pd.to_datetime(["2021-04-01", "2021-07-01"]),
            date=pd.Timestamp("2021-01-04"),
        )
    assert excinfo.value.date == pd.Timestamp("2021-01-04")


def test_select_universe_skip_policy_drops_grid_point(caplog: pytest.LogCaptureFixture) -> None:
    eligible = _eligible([("A", "2021-06-01")])

    with caplog.at_level(logging.WARNING, logger="ladder_quant.portfolio.universe"):
        selected = select_universe(
            eligible, pd.to_datetime(["2021-04-01", "2021-07-01"]), on_missing="skip"
        )

    assert selected["instrument_id"].tolist() == ["A"]
    assert "Skipping grid point" in caplog.text


def test_select_universe_skip_policy_with_nothing_selected() -> None:
    with pytest.raises(NoEligibleTargetError):
        select_universe(_eligible([]), pd.to_datetime(["2021-04-01"]), on_missing="skip")


def test_select_universe_rejects_unknown_policy() -> None:
    with pytest.raises(ValueError):
        select_universe(_eligible([("A", "2021-03-01")]), [], on_missing="ignore")
