from __future__ import annotations

import pandas as pd
import pytest

from ladder_quant.portfolio.triggers import maturity_trigger, triggered_ids


def _holdings(ttm: dict[str, int]) -> pd.DataFrame:
    return pd.DataFrame({"ttm_days": list(ttm.values())}, index=pd.Index(list(ttm), name="instrument_id"))


def test_maturity_trigger_fires_below_band_plus_grace() -> None:
    holdings = _holdings({"A": 84, "B": 85, "C": 300})

    events = maturity_trigger(holdings, pd.Timestamp("2021-01-07"), min_days=80, grace_days=5)

    assert triggered_ids(events) == ["A"]
    event = events[0]
    assert event.trigger == "maturity"
    assert event.value == 84.0
    assert event.threshold == 85.0
    assert event.details["date"] == pd.Timestamp("2021-01-07")


def test_maturity_trigger_zero_grace_fires_at_band_edge() -> None:
    holdings = _holdings({"A": 79, "B": 80})
    events = maturity_trigger(holdings, pd.Timestamp("2021-01-07"), min_days=80, grace_days=0)
    assert triggered_ids(events) == ["A"]


def test_maturity_trigger_no_holdings() -> None:
    assert maturity_trigger(_holdings({}), pd.Timestamp("2021-01-07"), min_days=80, grace_days=5) == []


def test_maturity_trigger_rejects_negative_grace() -> None:
    with pytest.raises(ValueError):
        maturity_trigger(_holdings({"A": 1}), pd.Timestamp("2021-01-07"), min_days=80, grace_days=-1)
