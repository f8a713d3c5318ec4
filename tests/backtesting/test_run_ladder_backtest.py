from __future__ import annotations

import json
from pathlib import Path

import pytest

from ladder_quant.backtesting import run_ladder_backtest
from ladder_quant.config import ConfigError, get_settings
from ladder_quant.errors import DataGapError


def test_dry_run_validates_without_reading_data(ladder_project: Path) -> None:
    (ladder_project.parent.parent / "data" / "prices.csv").unlink()

    result = run_ladder_backtest(ladder_project, dry_run=True)

    assert result.dry_run
    assert result.simulation is None
    payload = result.to_dict()
    assert payload["status"] == "preview"
    assert payload["name"] == "toy_ladder"
    assert payload["strategy"]["grid_points"] == 2


def test_full_run_resolves_paths_relative_to_config(ladder_project: Path) -> None:
    result = run_ladder_backtest(ladder_project, dry_run=False)

    assert result.simulation is not None
    summary = result.to_dict()["summary"]
    assert summary["n_dates"] == 5
    assert summary["n_trades"] == 4
    assert summary["final_cash"] == pytest.approx(96.0)
    assert result.metrics is not None


def test_default_config_comes_from_configs_dir(ladder_project: Path) -> None:
    ladder_project.rename(ladder_project.with_name("ladder_7_10.yaml"))

    result = run_ladder_backtest(dry_run=True, settings=get_settings())

    assert result.config_path.name == "ladder_7_10.yaml"


def test_to_dict_with_timeseries_is_json_serialisable(ladder_project: Path) -> None:
    payload = run_ladder_backtest(ladder_project, dry_run=False).to_dict(include_timeseries=True)

    encoded = json.loads(json.dumps(payload))
    assert encoded["portfolio_values"][0]["date"] == "2021-01-04"
    assert encoded["trades"][-1]["instrument_id"] == "D"


def test_missing_config_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        run_ladder_backtest(tmp_path / "missing.yaml")


def test_invalid_strategy_raises_config_error(ladder_project: Path) -> None:
    text = ladder_project.read_text(encoding="utf-8").replace("grace_days: 5", "grace_days: -5")
    ladder_project.write_text(text, encoding="utf-8")

    with pytest.raises(ConfigError):
        run_ladder_backtest(ladder_project)


def test_missing_data_file_raises(ladder_project: Path) -> None:
    (ladder_project.parent.parent / "data" / "cash_flows.csv").unlink()

    with pytest.raises(FileNotFoundError, match="cash_flows"):
        run_ladder_backtest(ladder_project, dry_run=False)


def test_data_gap_surfaces_from_run(ladder_project: Path) -> None:
    prices_path = ladder_project.parent.parent / "data" / "prices.csv"
    lines = prices_path.read_text(encoding="utf-8").splitlines()
    kept = [line for line in lines if not line.startswith("B,2021-01-06")]
    prices_path.write_text("\n".join(kept) + "\n", encoding="utf-8")

    with pytest.raises(DataGapError, match="instruments=B"):
        run_ladder_backtest(ladder_project, dry_run=False)
