"""Rebalancing engine for the bond ladder and the config-driven backtest façade.

The engine replays the strategy one trading date at a time:

* on the first date it selects the universe along the maturity grid and
  splits the initial wealth over it (``initialize``);
* on every later date it rolls the holdings forward, collects coupons and,
  when a holding is about to leave the eligible band, sells it and buys the
  longest eligible instrument with everything available (``step``).

Each date is planned first (:meth:`RebalancingEngine.plan_day`, no side
effects) and then committed: the ledger entry and the position records of a
date are appended together or not at all.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

from ..config import (
    LadderBacktestConfig,
    Settings,
    StrategyParams,
    get_settings,
    load_config,
    resolve_config_path,
)
from ..config.constants import (
    COLUMN_DATE,
    COLUMN_INSTRUMENT,
    COLUMN_MATURITY,
    COLUMN_PRICE,
)
from ..costs.transaction_costs import cost_paid, trade_price
from ..data.market import BondMarket
from ..errors import DataGapError, NoEligibleTargetError, NonFiniteOrderError, StateError
from ..portfolio.orders import generate_orders, units_for_cash
from ..portfolio.triggers import maturity_trigger, triggered_ids
from ..portfolio.universe import maturity_grid, select_universe
from ..utils.logging_config import get_logger, log_dict
from .bookkeeping import CashLedger
from .metrics import PortfolioMetrics, compute_performance_metrics
from .positions import PositionHistory, PositionRecord
from .valuation import value_portfolio

TRADE_COLUMNS = [
    COLUMN_DATE,
    COLUMN_INSTRUMENT,
    "side",
    "units",
    "price",
    "trade_price",
    "cash_flow",
    "cost_paid",
    "reason",
]

__all__ = [
    "TRADE_COLUMNS",
    "TradeRecord",
    "DayPlan",
    "SimulationResult",
    "RebalancingEngine",
    "BacktestResult",
    "run_ladder_backtest",
]

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class TradeRecord:
    date: pd.Timestamp
    instrument_id: str
    side: str
    units: int
    price: float
    trade_price: float
    cost_paid: float
    reason: str

    @property
    def cash_flow(self) -> float:
        """Signed cash impact: negative for buys, positive for sells."""
        sign = -1.0 if self.side == "buy" else 1.0
        return sign * self.units * self.trade_price

    def as_dict(self) -> dict[str, Any]:
        return {
            COLUMN_DATE: self.date,
            COLUMN_INSTRUMENT: self.instrument_id,
            "side": self.side,
            "units": self.units,
            "price": self.price,
            "trade_price": self.trade_price,
            "cash_flow": self.cash_flow,
            "cost_paid": self.cost_paid,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class DayPlan:
    """Everything one date appends to the histories."""

    date: pd.Timestamp
    opening_cash: float
    coupons: float
    transactions: float
    records: tuple[PositionRecord, ...]
    trades: tuple[TradeRecord, ...] = ()

    @property
    def traded(self) -> bool:
        return bool(self.trades)

    @property
    def closing_cash(self) -> float:
        return self.opening_cash + self.coupons + self.transactions


@dataclass
class SimulationResult:
    params: StrategyParams
    universe: pd.DataFrame
    positions: pd.DataFrame
    ledger: pd.DataFrame
    values: pd.DataFrame
    trades: pd.DataFrame
    metrics: PortfolioMetrics

    @property
    def start_date(self) -> pd.Timestamp | None:
        return self.values.index[0] if not self.values.empty else None

    @property
    def end_date(self) -> pd.Timestamp | None:
        return self.values.index[-1] if not self.values.empty else None

    def summary(self) -> dict[str, Any]:
        return {
            "start_date": None if self.start_date is None else self.start_date.strftime("%Y-%m-%d"),
            "end_date": None if self.end_date is None else self.end_date.strftime("%Y-%m-%d"),
            "n_dates": int(len(self.values)),
            "n_trades": int(len(self.trades)),
            "universe": self.universe[COLUMN_INSTRUMENT].tolist(),
            "final_cash": float(self.values["cash"].iloc[-1]) if not self.values.empty else 0.0,
            "final_value": float(self.values["total_value"].iloc[-1]) if not self.values.empty else 0.0,
        }


class RebalancingEngine:
    """Stateful replay of the ladder strategy over a :class:`BondMarket`.

    The engine starts in the ``initializing`` phase, moves to ``holding``
    after :meth:`initialize` and to ``finished`` at the end of :meth:`run`.
    Any fatal error leaves the histories as they were before the failing
    date.
    """

    INITIALIZING = "initializing"
    HOLDING = "holding"
    FINISHED = "finished"

    def __init__(self, market: BondMarket, params: StrategyParams | None = None) -> None:
        self.market = market
        self.params = params or StrategyParams()
        self.ledger = CashLedger(self.params.initial_wealth)
        self.positions = PositionHistory()
        self.trades: list[TradeRecord] = []
        self.universe: pd.DataFrame | None = None
        self.phase = self.INITIALIZING

    # ----------------------------------------------------------------- dates
    def simulation_dates(self) -> pd.DatetimeIndex:
        """Trading dates to replay; the first one is the initialisation date."""

        dates = self.market.trading_dates(self.params.start_date, self.params.n_dates)
        if len(dates) == 0:
            start = self.params.start_date
            raise DataGapError("no trading date on or after the start date", date=start)
        return dates

    def _eligible(self, date: pd.Timestamp) -> pd.DataFrame:
        return self.market.eligible_on(
            date,
            min_days=self.params.min_days,
            max_days=self.params.max_days,
            excluded_types=self.params.excluded_types,
        )

    # ------------------------------------------------------------ day plans
    def plan_initial(self, date: pd.Timestamp) -> tuple[DayPlan, pd.DataFrame]:
        """Universe selection and equal-split buys for the first date."""

        date = pd.Timestamp(date)
        params = self.params
        grid = maturity_grid(
            date,
            offset_years=params.grid_offset_years,
            step_months=params.grid_step_months,
            points=params.grid_points,
        )
        universe = select_universe(
            self._eligible(date),
            grid,
            on_missing=params.on_missing_grid_point,
            date=date,
        )
        opening_cash = self.ledger.opening_cash(date)
        try:
            batch = generate_orders(universe, opening_cash, params.transaction_cost, side="buy")
        except NonFiniteOrderError as exc:
            raise NonFiniteOrderError(exc.reason, date=date, instrument_ids=exc.instrument_ids) from exc
        ids = universe[COLUMN_INSTRUMENT].astype(str).tolist()
        payments = self.market.coupon_payments(date, ids)

        records: list[PositionRecord] = []
        trades: list[TradeRecord] = []
        for instrument_id, price in zip(ids, universe[COLUMN_PRICE].astype(float)):
            units = int(batch.units[instrument_id])
            buy_price = float(batch.trade_prices[instrument_id])
            records.append(
                PositionRecord(
                    date=date,
                    instrument_id=instrument_id,
                    price=price,
                    opening_units=0,
                    order_units=units,
                    coupon_payment=float(payments[instrument_id]),
                    transaction_price=buy_price if units > 0 else price,
                )
            )
            if units > 0:
                trades.append(
                    TradeRecord(
                        date=date,
                        instrument_id=instrument_id,
                        side="buy",
                        units=units,
                        price=price,
                        trade_price=buy_price,
                        cost_paid=cost_paid(units, params.transaction_cost),
                        reason="initial",
                    )
                )

        plan = DayPlan(
            date=date,
            opening_cash=opening_cash,
            coupons=0.0,
            transactions=-batch.cash_spent,
            records=tuple(records),
            trades=tuple(trades),
        )
        return plan, universe

    def plan_day(self, date: pd.Timestamp) -> DayPlan:
        """Roll the latest holdings forward to ``date`` without committing.

        Raises
        ------
        DataGapError
            A held instrument has no price on ``date``.
        NoEligibleTargetError
            A sale is due but nothing is eligible to buy.
        """

        date = pd.Timestamp(date)
        params = self.params
        holdings = self.positions.closing_holdings()
        held_ids = sorted(holdings)
        opening_cash = self.ledger.opening_cash(date)

        quotes = self.market.prices_for(date, held_ids)
        payments = self.market.coupon_payments(date, held_ids)
        coupons = float(sum(holdings[i] * float(payments[i]) for i in held_ids))

        events = maturity_trigger(
            quotes, date, min_days=params.min_days, grace_days=params.grace_days
        )
        to_sell = set(triggered_ids(events))

        records: dict[str, PositionRecord] = {}
        for instrument_id in held_ids:
            price = float(quotes.at[instrument_id, COLUMN_PRICE])
            records[instrument_id] = PositionRecord(
                date=date,
                instrument_id=instrument_id,
                price=price,
                opening_units=holdings[instrument_id],
                order_units=0,
                coupon_payment=float(payments[instrument_id]),
                transaction_price=price,
            )

        if not to_sell:
            return DayPlan(
                date=date,
                opening_cash=opening_cash,
                coupons=coupons,
                transactions=0.0,
                records=tuple(records.values()),
            )

        trades: list[TradeRecord] = []
        released = 0.0
        for instrument_id in sorted(to_sell):
            current = records[instrument_id]
            sell_price = trade_price(current.price, params.transaction_cost, "sell")
            if sell_price <= 0:
                raise NonFiniteOrderError(
                    f"sell trade price {sell_price} is not positive",
                    date=date,
                    instrument_ids=[instrument_id],
                )
            units = current.opening_units
            released += units * sell_price
            records[instrument_id] = PositionRecord(
                date=date,
                instrument_id=instrument_id,
                price=current.price,
                opening_units=units,
                order_units=-units,
                coupon_payment=current.coupon_payment,
                transaction_price=sell_price,
            )
            trades.append(
                TradeRecord(
                    date=date,
                    instrument_id=instrument_id,
                    side="sell",
                    units=units,
                    price=current.price,
                    trade_price=sell_price,
                    cost_paid=cost_paid(units, params.transaction_cost),
                    reason="maturity",
                )
            )

        target = self.buy_target(date, exclude=to_sell)
        target_id = str(target[COLUMN_INSTRUMENT])
        target_price = float(target[COLUMN_PRICE])
        buy_price = trade_price(target_price, params.transaction_cost, "buy")
        available = opening_cash + coupons + released
        try:
            units = units_for_cash(available, buy_price)
        except NonFiniteOrderError as exc:
            raise NonFiniteOrderError(exc.reason, date=date, instrument_ids=[target_id]) from exc

        if units > 0:
            existing = records.get(target_id)
            if existing is not None:
                records[target_id] = PositionRecord(
                    date=date,
                    instrument_id=target_id,
                    price=existing.price,
                    opening_units=existing.opening_units,
                    order_units=units,
                    coupon_payment=existing.coupon_payment,
                    transaction_price=buy_price,
                )
            else:
                payment = self.market.coupon_payments(date, [target_id])
                records[target_id] = PositionRecord(
                    date=date,
                    instrument_id=target_id,
                    price=target_price,
                    opening_units=0,
                    order_units=units,
                    coupon_payment=float(payment[target_id]),
                    transaction_price=buy_price,
                )
            trades.append(
                TradeRecord(
                    date=date,
                    instrument_id=target_id,
                    side="buy",
                    units=units,
                    price=target_price,
                    trade_price=buy_price,
                    cost_paid=cost_paid(units, params.transaction_cost),
                    reason="replacement",
                )
            )
        else:
            logger.warning(
                "Cash %.2f buys no unit of %s at %.4f on %s",
                available,
                target_id,
                buy_price,
                date.date(),
            )

        return DayPlan(
            date=date,
            opening_cash=opening_cash,
            coupons=coupons,
            transactions=released - units * buy_price,
            records=tuple(records.values()),
            trades=tuple(trades),
        )

    def buy_target(
        self, date: pd.Timestamp, *, exclude: set[str] | frozenset[str] = frozenset()
    ) -> pd.Series:
        """Eligible instrument with the greatest maturity; ties go to the lowest id."""

        eligible = self._eligible(date)
        candidates = eligible[~eligible[COLUMN_INSTRUMENT].isin(exclude)]
        if candidates.empty:
            raise NoEligibleTargetError(
                "no eligible instrument to buy", date=date, instrument_ids=sorted(exclude)
            )
        ordered = candidates.sort_values(
            [COLUMN_MATURITY, COLUMN_INSTRUMENT], ascending=[False, True]
        )
        return ordered.iloc[0]

    # ------------------------------------------------------------ commits
    def _commit(self, plan: DayPlan) -> None:
        self.positions.validate_day(plan.date, plan.records)
        self.ledger.record(
            plan.date, plan.coupons, plan.transactions, opening_cash=plan.opening_cash
        )
        self.positions.append_day(plan.date, plan.records)
        self.trades.extend(plan.trades)

        for trade in plan.trades:
            log_dict(
                logger,
                "Trade executed",
                {
                    "trade_date": trade.date.strftime("%Y-%m-%d"),
                    "instrument_id": trade.instrument_id,
                    "side": trade.side,
                    "units": trade.units,
                    "trade_price": trade.trade_price,
                    "reason": trade.reason,
                },
            )
        logger.debug(
            "%s | holdings=%d coupons=%.4f transactions=%.4f closing_cash=%.4f",
            plan.date.date(),
            sum(1 for record in plan.records if record.closing_units > 0),
            plan.coupons,
            plan.transactions,
            plan.closing_cash,
        )

    def initialize(self, date: pd.Timestamp | None = None) -> DayPlan:
        """Select the universe and place the initial orders."""

        if self.phase != self.INITIALIZING:
            raise StateError(f"initialize called in phase '{self.phase}'", date=date)
        dates = self.simulation_dates()
        if date is None:
            date = dates[0]
        elif pd.Timestamp(date) not in dates:
            raise DataGapError("initialisation date is not a simulation date", date=date)
        plan, universe = self.plan_initial(date)
        self._commit(plan)
        self.universe = universe
        self.phase = self.HOLDING
        log_dict(
            logger,
            "Ladder initialised",
            {
                "start_date": plan.date.strftime("%Y-%m-%d"),
                "n_instruments": len(universe),
                "cash_spent": -plan.transactions,
                "leftover_cash": plan.closing_cash,
            },
        )
        return plan

    def step(self, date: pd.Timestamp) -> DayPlan:
        """Apply the holding transition for ``date``."""

        if self.phase != self.HOLDING:
            raise StateError(f"step called in phase '{self.phase}'", date=date)
        plan = self.plan_day(date)
        self._commit(plan)
        return plan

    def run(self) -> SimulationResult:
        """Replay every simulation date and collect the results."""

        dates = self.simulation_dates()
        self.initialize(dates[0])
        for date in dates[1:]:
            self.step(date)
        self.phase = self.FINISHED
        result = self.result()
        log_dict(logger, "Simulation finished", result.summary())
        return result

    def result(self) -> SimulationResult:
        positions = self.positions.frame()
        ledger = self.ledger.frame()
        values = value_portfolio(positions, ledger)
        if self.trades:
            trades = pd.DataFrame([trade.as_dict() for trade in self.trades], columns=TRADE_COLUMNS)
        else:
            trades = pd.DataFrame(columns=TRADE_COLUMNS)
        universe = self.universe if self.universe is not None else pd.DataFrame(columns=[COLUMN_INSTRUMENT])
        return SimulationResult(
            params=self.params,
            universe=universe,
            positions=positions,
            ledger=ledger,
            values=values,
            trades=trades,
            metrics=compute_performance_metrics(values["total_value"]),
        )


# ---------------------------------------------------------------------------
# Config-driven entry point
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class BacktestResult:
    config_path: Path
    environment: str
    base_currency: str
    dry_run: bool
    config: LadderBacktestConfig | None = None
    simulation: SimulationResult | None = None
    notes: list[str] = field(default_factory=list)

    @property
    def metrics(self) -> PortfolioMetrics | None:
        return None if self.simulation is None else self.simulation.metrics

    def to_dict(self, include_timeseries: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "config_path": str(self.config_path),
            "environment": self.environment,
            "base_currency": self.base_currency,
            "dry_run": self.dry_run,
            "status": "preview" if self.dry_run else "completed",
        }
        if self.config is not None:
            payload["name"] = self.config.name
            payload["strategy"] = self.config.strategy.model_dump(mode="json")
        if self.simulation is not None:
            payload["summary"] = self.simulation.summary()
            payload["metrics"] = dict(self.simulation.metrics.as_dict())
        if self.notes:
            payload["notes"] = list(self.notes)
        if include_timeseries and self.simulation is not None:
            values = self.simulation.values.reset_index()
            values[COLUMN_DATE] = pd.to_datetime(values[COLUMN_DATE]).dt.strftime("%Y-%m-%d")
            payload["portfolio_values"] = values.to_dict(orient="records")
            trades = self.simulation.trades.copy()
            if not trades.empty:
                trades[COLUMN_DATE] = pd.to_datetime(trades[COLUMN_DATE]).dt.strftime("%Y-%m-%d")
            payload["trades"] = trades.to_dict(orient="records")
        return payload


def load_market(config: LadderBacktestConfig, *, base: Path) -> BondMarket:
    """Build the :class:`BondMarket` described by ``config.data``."""

    sources = config.data.resolve(base)
    for path in (sources.instruments, sources.prices, sources.cash_flows):
        if path is not None and not path.exists():
            raise FileNotFoundError(f"Data file not found: {path}")
    return BondMarket.from_sources(sources.instruments, sources.prices, sources.cash_flows)


def run_ladder_backtest(
    config_path: str | Path | None = None,
    *,
    dry_run: bool = True,
    settings: Settings | None = None,
) -> BacktestResult:
    """Execute the ladder backtest described by ``config_path``.

    Relative data paths in the configuration are resolved against the
    directory of the configuration file. With ``dry_run`` the configuration
    is validated but no data is read.
    """

    settings = settings or get_settings()
    candidate = config_path or settings.default_config_path
    resolved = resolve_config_path(candidate, settings.project_root)
    config = load_config(resolved, LadderBacktestConfig)

    result = BacktestResult(
        config_path=resolved,
        environment=settings.environment,
        base_currency=config.base_currency,
        dry_run=dry_run,
        config=config,
    )
    if dry_run:
        result.notes.append("Dry run: configuration validated, simulation skipped.")
        return result

    market = load_market(config, base=resolved.parent)
    engine = RebalancingEngine(market, config.strategy.to_params())
    result.simulation = engine.run()
    if config.base_currency != settings.base_currency:
        result.notes.append(
            f"Config currency {config.base_currency} differs from settings {settings.base_currency}."
        )
    return result
