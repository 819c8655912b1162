"""
trade_journal.analytics.tax

Monthly day-trade income tax estimate (Brazilian DARF, revenue code 6015).

Responsibilities:
- Identify day trades and attach per-trade costs and withheld tax (IRRF).
- Compute the monthly tax with loss carry-forward.
- Build DARF payment data and run a whole year month by month.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any

from trade_journal.analytics.types import TradeLike

DAY_TRADE_RATE = 0.20
IRRF_RATE = 0.01
DARF_CODE = "6015"


@dataclass(frozen=True, slots=True)
class TaxCostsConfig:
    brokerage_fee: float = 0.0
    # Percent of traded volume; volume is unknown without contract specs, so unused for now.
    exchange_fee_pct: float = 0.0
    # Percent of brokerage (ISS and similar).
    taxes_pct: float = 0.0


@dataclass(frozen=True, slots=True)
class TaxableTrade:
    trade: TradeLike
    brokerage_fee: float
    exchange_fee: float
    taxes: float
    irrf: float
    net_result: float
    is_day_trade: bool

    @property
    def costs(self) -> float:
        return self.brokerage_fee + self.exchange_fee + self.taxes


@dataclass(frozen=True, slots=True)
class TaxCalculation:
    month: str
    gross_profit: float
    costs: float
    net_result: float
    accumulated_loss: float
    taxable_basis: float
    irrf_deduction: float
    tax_due: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class Darf:
    code: str
    period: date
    due_date: date
    amount: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "period": self.period.isoformat(),
            "due_date": self.due_date.isoformat(),
            "amount": self.amount,
        }


def _is_day_trade(trade: TradeLike) -> bool:
    return trade.exit_date is not None and trade.entry_date == trade.exit_date


def identify_day_trades(trades: Iterable[TradeLike]) -> list[TradeLike]:
    return [t for t in trades if _is_day_trade(t)]


def enrich_trades_with_costs(
    trades: Iterable[TradeLike], config: TaxCostsConfig
) -> list[TaxableTrade]:
    out: list[TaxableTrade] = []
    for t in trades:
        day_trade = _is_day_trade(t)
        gross = t.pnl or 0.0
        brokerage = config.brokerage_fee
        taxes = brokerage * config.taxes_pct / 100
        exchange_fee = 0.0
        irrf = gross * IRRF_RATE if day_trade and gross > 0 else 0.0
        out.append(
            TaxableTrade(
                trade=t,
                brokerage_fee=brokerage,
                exchange_fee=exchange_fee,
                taxes=taxes,
                irrf=irrf,
                net_result=gross - (brokerage + taxes + exchange_fee),
                is_day_trade=day_trade,
            )
        )
    return out


def calculate_monthly_tax(
    month: str, trades: Sequence[TaxableTrade], previous_loss: float
) -> TaxCalculation:
    """
    Day-trade tax for `month` ("YYYY-MM").

    IRRF is credited against the tax, not deducted from the basis, so `tax_due`
    can go negative (a credit).
    """

    in_month = [
        t
        for t in trades
        if t.is_day_trade
        and t.trade.exit_date is not None
        and t.trade.exit_date.strftime("%Y-%m") == month
    ]
    gross = sum(t.trade.pnl or 0.0 for t in in_month)
    costs = sum(t.costs for t in in_month)
    irrf = sum(t.irrf for t in in_month)
    net = gross - costs

    accumulated = previous_loss
    basis = 0.0
    if net > 0:
        if net >= accumulated:
            basis = net - accumulated
            accumulated = 0.0
        else:
            accumulated -= net
    else:
        accumulated += abs(net)

    tax_due = basis * DAY_TRADE_RATE - irrf if basis > 0 else 0.0

    return TaxCalculation(
        month=month,
        gross_profit=gross,
        costs=costs,
        net_result=net,
        accumulated_loss=accumulated,
        taxable_basis=basis,
        irrf_deduction=irrf,
        tax_due=tax_due,
    )


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def generate_darf(calculation: TaxCalculation) -> Darf:
    year, month = (int(p) for p in calculation.month.split("-"))
    due_year, due_month = (year + 1, 1) if month == 12 else (year, month + 1)

    due = _month_end(due_year, due_month)
    # Saturday -> Friday, Sunday -> Friday.
    if due.weekday() == 5:
        due -= timedelta(days=1)
    elif due.weekday() == 6:
        due -= timedelta(days=2)

    return Darf(
        code=DARF_CODE,
        period=_month_end(year, month),
        due_date=due,
        amount=max(0.0, calculation.tax_due),
    )


def calculate_tax_year(
    trades: Iterable[TradeLike], year: int, config: TaxCostsConfig, *, opening_loss: float = 0.0
) -> list[dict[str, Any]]:
    taxable = enrich_trades_with_costs(trades, config)
    carried = opening_loss
    months: list[dict[str, Any]] = []
    for month in range(1, 13):
        calc = calculate_monthly_tax(f"{year:04d}-{month:02d}", taxable, carried)
        carried = calc.accumulated_loss
        months.append({**calc.to_dict(), "darf": generate_darf(calc).to_dict()})
    return months
