"""Input tables and the in-memory market view."""

from .market import BondMarket
from .tables import (
    Instrument,
    TableSchemaError,
    instruments_from_frame,
    load_cash_flows,
    load_instruments,
    load_prices,
)

__all__ = [
    "BondMarket",
    "Instrument",
    "TableSchemaError",
    "instruments_from_frame",
    "load_cash_flows",
    "load_instruments",
    "load_prices",
]
