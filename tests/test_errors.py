from __future__ import annotations

import pandas as pd

from ladder_quant.errors import (
    DataGapError,
    LadderError,
    LedgerConsistencyError,
    NoEligibleTargetError,
    StateError,
)


def test_message_includes_date_and_instruments() -> None:
    exc = DataGapError("missing price", date=pd.Timestamp("2021-01-06"), instrument_ids=["B", "C"])

    assert str(exc) == "missing price | date=2021-01-06 | instruments=B, C"
    assert exc.date == pd.Timestamp("2021-01-06")
    assert exc.instrument_ids == ("B", "C")
    assert exc.reason == "missing price"


def test_message_without_context() -> None:
    exc = NoEligibleTargetError("nothing to buy")

    assert str(exc) == "nothing to buy"
    assert exc.date is None
    assert exc.instrument_ids == ()


def test_hierarchy() -> None:
    assert issubclass(LedgerConsistencyError, StateError)
    assert issubclass(StateError, LadderError)
    assert issubclass(DataGapError, LadderError)
