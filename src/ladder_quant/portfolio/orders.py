"""Convert available cash into integer unit orders."""

from __future__ import annotations

import math
from dataclasses import dataclass

import pandas as pd

from ..config.constants import COLUMN_INSTRUMENT, COLUMN_PRICE
from ..costs.transaction_costs import trade_price
from ..errors import NonFiniteOrderError

__all__ = ["OrderBatch", "units_for_cash", "generate_orders"]

_RATIO_SLACK = 1e-12


@dataclass(frozen=True)
class OrderBatch:
    """Outcome of a sequential allocation."""

    units: pd.Series
    trade_prices: pd.Series
    cash_available: float
    cash_spent: float
    leftover_cash: float

    @property
    def total_units(self) -> int:
        return int(self.units.sum())

    def to_dict(self) -> dict[str, float]:
        return {
            "cash_available": float(self.cash_available),
            "cash_spent": float(self.cash_spent),
            "leftover_cash": float(self.leftover_cash),
            "total_units": self.total_units,
        }


def units_for_cash(cash: float, price: float, *, strict: bool = True) -> int:
    """Number of whole units of ``price`` that ``cash`` pays for.

    Non-positive cash buys nothing. A non-positive or non-finite ``price``
    raises :class:`NonFiniteOrderError` when ``strict``; otherwise it yields
    zero units.
    """

    cash = float(cash)
    price = float(price)
    if not math.isfinite(price) or price <= 0:
        if strict:
            raise NonFiniteOrderError(f"cannot size an order at trade price {price}")
        return 0
    if not math.isfinite(cash):
        raise NonFiniteOrderError(f"cannot size an order with cash {cash}")
    if cash <= 0:
        return 0

    units = math.floor(cash / price * (1.0 + _RATIO_SLACK))
    # The slack absorbs ratios like 4.9999999999; the order still never exceeds cash.
    while units > 0 and units * price > cash:
        units -= 1
    return int(units)


def generate_orders(
    candidates: pd.DataFrame,
    cash: float,
    cost: float,
    *,
    side: str = "buy",
    strict: bool = True,
) -> OrderBatch:
    """Split ``cash`` equally and greedily over ``candidates`` in row order.

    Each candidate receives ``cash_remaining / candidates_remaining``, buys
    ``floor(share / trade_price)`` units and passes the unspent part on to
    the next candidate. Nothing is re-optimised afterwards, so the leftover
    of the last candidate stays in cash.

    Parameters
    ----------
    candidates:
        Rows with ``instrument_id`` and ``price``, already in processing order
        (ascending maturity for the initial allocation).
    cash:
        Cash available for the whole batch.
    cost:
        Fixed per-unit transaction cost.
    side:
        ``"buy"`` adds the cost to the price, ``"sell"`` subtracts it.
    """

    ids = candidates[COLUMN_INSTRUMENT].astype(str).tolist()
    if len(set(ids)) != len(ids):
        raise ValueError("candidates must not repeat an instrument")

    cash_available = float(cash)
    cash_left = cash_available
    remaining = len(ids)
    units: list[int] = []
    prices: list[float] = []

    for instrument_id, market_price in zip(ids, candidates[COLUMN_PRICE].astype(float)):
        if not math.isfinite(market_price):
            if strict:
                raise NonFiniteOrderError(
                    f"non-finite market price {market_price}", instrument_ids=[instrument_id]
                )
            units.append(0)
            prices.append(float("nan"))
            remaining -= 1
            continue
        price = trade_price(market_price, cost, side)
        share = cash_left / remaining
        n_units = units_for_cash(share, price, strict=strict)
        if n_units < 0:
            raise NonFiniteOrderError(f"negative unit count {n_units}")
        units.append(n_units)
        prices.append(price)
        cash_left -= n_units * price
        remaining -= 1

    index = pd.Index(ids, name=COLUMN_INSTRUMENT)
    return OrderBatch(
        units=pd.Series(units, index=index, dtype="int64", name="units"),
        trade_prices=pd.Series(prices, index=index, dtype=float, name="trade_price"),
        cash_available=cash_available,
        cash_spent=cash_available - cash_left,
        leftover_cash=cash_left,
    )
