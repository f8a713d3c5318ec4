"""Rebalance trigger for holdings drifting out of the maturity band."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import pandas as pd

from ..config.constants import COLUMN_TTM

__all__ = ["TriggerEvent", "maturity_trigger", "triggered_ids"]


@dataclass(frozen=True)
class TriggerEvent:
    trigger: str
    instrument_id: str
    value: float
    threshold: float
    details: Mapping[str, Any]


def maturity_trigger(
    holdings: pd.DataFrame,
    date: pd.Timestamp,
    *,
    min_days: int,
    grace_days: int,
) -> list[TriggerEvent]:
    """Flag held instruments whose remaining maturity fell below the band.

    ``holdings`` is indexed by instrument id and carries ``ttm_days`` for
    ``date``. An instrument fires when ``ttm_days < min_days + grace_days``,
    i.e. ``grace_days`` before it would leave the eligible band.
    """

    if grace_days < 0:
        raise ValueError("grace_days must be non-negative")
    threshold = int(min_days) + int(grace_days)
    events: list[TriggerEvent] = []
    for instrument_id, ttm in holdings[COLUMN_TTM].items():
        if ttm < threshold:
            events.append(
                TriggerEvent(
                    trigger="maturity",
                    instrument_id=str(instrument_id),
                    value=float(ttm),
                    threshold=float(threshold),
                    details={"date": pd.Timestamp(date)},
                )
            )
    return events


def triggered_ids(events: Iterable[TriggerEvent]) -> list[str]:
    return [event.instrument_id for event in events]
