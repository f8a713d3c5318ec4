from __future__ import annotations

import math

import pandas as pd
import pytest

from ladder_quant.errors import NonFiniteOrderError
from ladder_quant.portfolio.orders import generate_orders, units_for_cash


def _candidates(prices: dict[str, float]) -> pd.DataFrame:
    return pd.DataFrame({"instrument_id": list(prices), "price": list(prices.values())})


def test_single_candidate_spends_everything() -> None:
    batch = generate_orders(_candidates({"A": 99.7}), 10_000.0, 0.3)

    assert batch.units["A"] == 100
    assert batch.trade_prices["A"] == pytest.approx(100.0)
    assert batch.leftover_cash == pytest.approx(0.0, abs=1e-9)
    assert batch.cash_spent == pytest.approx(10_000.0)


def test_two_candidates_sequential_equal_split() -> None:
    batch = generate_orders(_candidates({"A": 98.0, "B": 99.0}), 1_000.0, 0.3)

    assert batch.units.tolist() == [5, 5]
    assert batch.trade_prices.tolist() == pytest.approx([98.3, 99.3])
    assert batch.cash_spent == pytest.approx(988.0)
    assert batch.leftover_cash == pytest.approx(12.0)
    assert batch.to_dict()["total_units"] == 10


def test_orders_never_overspend() -> None:
    prices = {f"I{i:02d}": 95.0 + 0.37 * i for i in range(12)}

    batch = generate_orders(_candidates(prices), 10_000.0, 0.3)

    assert batch.cash_spent <= 10_000.0 + 1e-9
    assert (batch.units >= 0).all()
    assert str(batch.units.dtype) == "int64"
    spent = float((batch.units * batch.trade_prices).sum())
    assert spent == pytest.approx(batch.cash_spent)


def test_generate_orders_rejects_repeated_instruments() -> None:
    candidates = pd.DataFrame({"instrument_id": ["A", "A"], "price": [99.0, 99.0]})
    with pytest.raises(ValueError, match="repeat"):
        generate_orders(candidates, 1_000.0, 0.3)


def test_generate_orders_sell_side_subtracts_cost() -> None:
    batch = generate_orders(_candidates({"A": 100.3}), 500.0, 0.3, side="sell")
    assert batch.trade_prices["A"] == pytest.approx(100.0)
    assert batch.units["A"] == 5


def test_generate_orders_non_finite_price() -> None:
    candidates = _candidates({"A": float("nan"), "B": 99.7})

    with pytest.raises(NonFiniteOrderError) as excinfo:
        generate_orders(candidates, 1_000.0, 0.3)
    assert excinfo.value.instrument_ids == ("A",)

    lenient = generate_orders(candidates, 1_000.0, 0.3, strict=False)
    assert lenient.units.tolist() == [0, 10]
    assert math.isnan(lenient.trade_prices["A"])


@pytest.mark.parametrize(
    "cash, price, expected",
    [
        (500.0, 98.3, 5),
        (491.5, 98.3, 5),
        (508.5, 99.3, 5),
        (99.99, 100.0, 0),
        (0.0, 100.0, 0),
        (-10.0, 100.0, 0),
        (10_000.0, 100.0, 100),
        (500.0, 100.0000000001, 4),
    ],
)
def test_units_for_cash_floor(cash: float, price: float, expected: int) -> None:
    units = units_for_cash(cash, price)
    assert units == expected
    assert isinstance(units, int)


@pytest.mark.parametrize("price", [0.0, -1.0, float("inf"), float("nan")])
def test_units_for_cash_invalid_price(price: float) -> None:
    with pytest.raises(NonFiniteOrderError):
        units_for_cash(100.0, price)
    assert units_for_cash(100.0, price, strict=False) == 0


def test_units_for_cash_non_finite_cash() -> None:
    with pytest.raises(NonFiniteOrderError):
        units_for_cash(float("nan"), 100.0)


def test_leftover_cash_never_negative_near_integer_ratio() -> None:
    batch = generate_orders(_candidates({"A": 99.9999999999}), 500.0, 0.0000000002)

    price = float(batch.trade_prices["A"])
    assert int(batch.units["A"]) * price <= 500.0
    assert batch.leftover_cash >= 0.0
