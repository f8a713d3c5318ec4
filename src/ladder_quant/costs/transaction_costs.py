"""Utilitários para custos de transação por unidade.

A estratégia negocia com um custo fixo por unidade: o preço de negociação é
o preço de mercado acrescido do custo na compra e reduzido do custo na
venda. As funções aceitam escalares ou ``pandas.Series`` e rejeitam custos
negativos e preços não finitos.
"""

from __future__ import annotations

import math

import numpy as np
import pandas as pd

__all__ = ["PRICE_DECIMALS", "SIDES", "cost_paid", "trade_price", "trade_prices"]

SIDES = ("buy", "sell")

PRICE_DECIMALS = 10
"""Trade prices are rounded to this many decimals to drop float noise."""


def _sign(side: str) -> float:
    if side == "buy":
        return 1.0
    if side == "sell":
        return -1.0
    raise ValueError(f"side must be one of {SIDES}; received '{side}'")


def _check_cost(cost: float) -> float:
    cost = float(cost)
    if not math.isfinite(cost) or cost < 0:
        raise ValueError("transaction cost must be a non-negative finite number")
    return cost


def trade_price(price: float, cost: float, side: str) -> float:
    """Return the per-unit execution price for ``side``.

    Examples
    --------
    >>> trade_price(99.7, 0.3, "buy")
    100.0
    >>> trade_price(101.0, 0.5, "sell")
    100.5
    """

    price = float(price)
    if not math.isfinite(price):
        raise ValueError("price must be finite")
    return round(price + _sign(side) * _check_cost(cost), PRICE_DECIMALS)


def trade_prices(prices: pd.Series, cost: float, side: str) -> pd.Series:
    """Vectorised :func:`trade_price` preserving the index of ``prices``."""

    values = prices.astype(float)
    if not np.isfinite(values.to_numpy()).all():
        raise ValueError("prices contain non-finite values")
    return (values + _sign(side) * _check_cost(cost)).round(PRICE_DECIMALS)


def cost_paid(units: int | float, cost: float) -> float:
    """Transaction cost charged on ``units`` traded in either direction."""

    return abs(float(units)) * _check_cost(cost)
