"""Fatal error kinds raised by the ladder simulation.

Every error carries the simulation ``date`` and the ``instrument_ids``
involved (when known) so that a failed run can be traced back to the exact
input rows. None of them is retried: the replay is deterministic.
"""

from __future__ import annotations

from typing import Iterable

import pandas as pd

__all__ = [
    "LadderError",
    "DataGapError",
    "NoEligibleTargetError",
    "StateError",
    "LedgerConsistencyError",
    "NonFiniteOrderError",
]


class LadderError(Exception):
    """Base class for fatal simulation errors."""

    def __init__(
        self,
        message: str,
        *,
        date: pd.Timestamp | None = None,
        instrument_ids: Iterable[str] | None = None,
    ) -> None:
        self.date = None if date is None else pd.Timestamp(date)
        self.instrument_ids = tuple(str(i) for i in instrument_ids or ())
        self.reason = message
        super().__init__(self._render())

    def _render(self) -> str:
        parts = [self.reason]
        if self.date is not None:
            parts.append(f"date={self.date.date()}")
        if self.instrument_ids:
            parts.append(f"instruments={', '.join(self.instrument_ids)}")
        return " | ".join(parts)


class DataGapError(LadderError):
    """A held instrument has no price on a simulated date."""


class NoEligibleTargetError(LadderError):
    """No instrument qualifies for a required selection or buy."""


class StateError(LadderError):
    """The engine or ledger state would become inconsistent."""


class LedgerConsistencyError(StateError):
    """A ledger append would break the opening-cash chain or date order."""


class NonFiniteOrderError(LadderError):
    """An order would be derived from an invalid trade price or unit count."""
