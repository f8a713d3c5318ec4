"""Shared fixtures: a small deterministic bond market.

The toy market spans five trading days starting 2021-01-04 with an eligible
band of ``[80, 400]`` days and a two-point grid (start + 3m, start + 6m):

===  ==========  =============  =====  ==========================
id   maturity    type           price  role
===  ==========  =============  =====  ==========================
A    2021-04-01  NOTE           98.7   grid point 1, sold 01-07
B    2021-06-30  NOTE           99.7   grid point 2, coupon 01-06
C    2021-12-31  NOTE           100.2  eligible, never selected
D    2022-01-20  NOTE           100.7  longest: replacement buy
X    2021-07-01  30-Year BOND   97.0   excluded type
===  ==========  =============  =====  ==========================

With 10 000 of initial wealth and a 0.3 unit cost the ladder buys 50 A and
50 B on day one (leftover 50), receives 75 of coupons from B on 01-06 and,
on 01-07, sells A at 98.4 and buys 49 D at 101.0.
"""

from __future__ import annotations

from typing import Callable, Iterable, Mapping

import pandas as pd
import pytest

from ladder_quant.config import StrategyParams, reset_settings_cache
from ladder_quant.data import BondMarket, load_cash_flows, load_instruments, load_prices

TOY_DATES = pd.to_datetime(
    ["2021-01-04", "2021-01-05", "2021-01-06", "2021-01-07", "2021-01-08"]
)

TOY_INSTRUMENTS = [
    {"instrument_id": "A", "maturity": "2021-04-01", "instrument_type": "10-Year NOTE"},
    {"instrument_id": "B", "maturity": "2021-06-30", "instrument_type": "10-Year NOTE"},
    {"instrument_id": "C", "maturity": "2021-12-31", "instrument_type": "10-Year NOTE"},
    {"instrument_id": "D", "maturity": "2022-01-20", "instrument_type": "10-Year NOTE"},
    {"instrument_id": "X", "maturity": "2021-07-01", "instrument_type": "30-Year BOND"},
]

TOY_PRICES = {"A": 98.7, "B": 99.7, "C": 100.2, "D": 100.7, "X": 97.0}

TOY_CASH_FLOWS = [
    {"instrument_id": "B", "date": "2021-01-06", "payment": 1.5},
    {"instrument_id": "C", "date": "2021-01-06", "payment": 2.0},
]

MarketFactory = Callable[..., BondMarket]


def price_rows(
    prices: Mapping[str, float],
    dates: Iterable[pd.Timestamp] = TOY_DATES,
    *,
    skip: Iterable[tuple[str, str]] = (),
) -> list[dict[str, object]]:
    """Long price rows with a constant price per instrument.

    ``skip`` holds ``(instrument_id, "YYYY-MM-DD")`` pairs left out of the table.
    """

    skipped = {(i, pd.Timestamp(d)) for i, d in skip}
    return [
        {"instrument_id": instrument_id, "date": date, "price": price}
        for date in dates
        for instrument_id, price in prices.items()
        if (instrument_id, pd.Timestamp(date)) not in skipped
    ]


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterable[None]:
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def make_market() -> MarketFactory:
    """Factory building a :class:`BondMarket` from plain rows."""

    def _factory(
        instruments: list[dict[str, object]] | None = None,
        prices: list[dict[str, object]] | None = None,
        cash_flows: list[dict[str, object]] | None = None,
    ) -> BondMarket:
        instruments_df = load_instruments(pd.DataFrame(instruments or TOY_INSTRUMENTS))
        prices_df = load_prices(pd.DataFrame(prices or price_rows(TOY_PRICES)))
        flows = TOY_CASH_FLOWS if cash_flows is None else cash_flows
        flows_df = load_cash_flows(pd.DataFrame(flows)) if flows else load_cash_flows(None)
        return BondMarket(instruments_df, prices_df, flows_df)

    return _factory


@pytest.fixture
def toy_market(make_market: MarketFactory) -> BondMarket:
    return make_market()


@pytest.fixture
def toy_params() -> StrategyParams:
    return StrategyParams(
        initial_wealth=10_000.0,
        start_date=pd.Timestamp("2021-01-04"),
        min_days=80,
        max_days=400,
        excluded_types=("30-Year BOND",),
        grid_offset_years=0,
        grid_step_months=3,
        grid_points=2,
        transaction_cost=0.3,
        grace_days=5,
    )


LADDER_CONFIG_TEMPLATE = """
name: toy_ladder
base_currency: USD
data:
  instruments: ../data/instruments.csv
  prices: ../data/prices.csv
  cash_flows: ../data/cash_flows.csv
strategy:
  initial_wealth: 10000.0
  start_date: 2021-01-04
  min_days: 80
  max_days: 400
  excluded_types: ["30-Year BOND"]
  grid_offset_years: 0
  grid_step_months: 3
  grid_points: 2
  transaction_cost: 0.3
  grace_days: 5
"""


@pytest.fixture
def ladder_project(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Project tree with the toy market as CSV files and a YAML config.

    Returns the config path; ``LADDER_QUANT_*`` variables point every
    settings directory inside ``tmp_path``.
    """

    data_dir = tmp_path / "data"
    configs_dir = tmp_path / "configs"
    data_dir.mkdir()
    configs_dir.mkdir()
    pd.DataFrame(TOY_INSTRUMENTS).to_csv(data_dir / "instruments.csv", index=False)
    pd.DataFrame(price_rows(TOY_PRICES)).to_csv(data_dir / "prices.csv", index=False)
    pd.DataFrame(TOY_CASH_FLOWS).to_csv(data_dir / "cash_flows.csv", index=False)

    config_path = configs_dir / "ladder.yaml"
    config_path.write_text(LADDER_CONFIG_TEMPLATE.strip() + "\n", encoding="utf-8")

    monkeypatch.setenv("LADDER_QUANT_PROJECT_ROOT", str(tmp_path))
    monkeypatch.setenv("LADDER_QUANT_CONFIGS_DIR", str(configs_dir))
    monkeypatch.setenv("LADDER_QUANT_DATA_DIR", str(data_dir))
    monkeypatch.setenv("LADDER_QUANT_LOGS_DIR", str(tmp_path / "logs"))
    return config_path
