"""Ladder construction building blocks: eligibility, universe, orders, triggers."""

from .eligibility import attach_reference_data, filter_eligible
from .orders import OrderBatch, generate_orders, units_for_cash
from .triggers import TriggerEvent, maturity_trigger, triggered_ids
from .universe import maturity_grid, select_universe

__all__ = [
    "attach_reference_data",
    "filter_eligible",
    "OrderBatch",
    "generate_orders",
    "units_for_cash",
    "TriggerEvent",
    "maturity_trigger",
    "triggered_ids",
    "maturity_grid",
    "select_universe",
]
